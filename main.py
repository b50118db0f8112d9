import logging

from dotenv import load_dotenv

from concierge.session import ConciergeSession
from concierge.utils.config_parser import PROJECT_ROOT, PROMPTS_PATH, load_app_config
from concierge.workflows import MainOrchestrator

# --- LOGGING AND ENVIRONMENT SETUP ---
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
# Suppress excessively noisy logs from underlying HTTP libraries for cleaner output
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)

load_dotenv(PROJECT_ROOT / ".env")


def print_welcome_message():
    print("\n--- Agents Concierge: CLI Test Harness ---")
    print("Type 'exit' or 'quit' to end the session, 'reset' to start over.")
    print("Example prompts:")
    print('  - Single specialist: "Where\'s the best sushi in Tokyo?"')
    print('  - Two specialists:   "Find me a restaurant near Shibuya and tell me how to get there from the station."')
    print('  - Clarification:     "Plan my weekend"')
    print("----------------------------------------------------------\n")


def display_reply(reply: dict):
    if reply.get("error"):
        print(f"\n>> AI (error): {reply['error']}\n")
    elif reply.get("is_clarification"):
        print(f"\n>> AI (needs more information): {reply['content']}\n")
    else:
        print(f"\n>> AI: {reply['content']}\n")


def main():
    print("Initializing concierge...")
    try:
        app_config = load_app_config()
        orchestrator = MainOrchestrator.from_config(app_config, prompts_base_path=PROMPTS_PATH)
    except Exception as e:
        logging.critical("Failed to initialize orchestrator", exc_info=True)
        print(f"\nFATAL: Could not initialize the system. Error: {e}")
        return

    session = ConciergeSession(orchestrator)
    print_welcome_message()

    while True:
        try:
            prompt = input("You: ").strip()
            if prompt.lower() in ["exit", "quit"]:
                print("\nGoodbye!")
                break
            if prompt.lower() == "reset":
                session.reset()
                print("\n(conversation cleared)\n")
                continue
            if not prompt:
                continue

            display_reply(session.send(prompt))

        except (KeyboardInterrupt, EOFError):
            print("\n\nSession interrupted by user. Goodbye!")
            break
        except Exception:
            logging.critical("An unexpected error occurred in the main loop", exc_info=True)
            print("\nA critical error occurred. Please check the logs. The session has to end.")
            break


if __name__ == "__main__":
    main()
