from pathlib import Path
from typing import Optional, Tuple


class PromptManager:
    """
    Reads the plain-text prompt templates kept in one folder per agent
    (`<prompts_base_path>/<prompts_dir>/system.prompt` and so on).
    """

    def __init__(self, prompts_base_path: Path):
        if not prompts_base_path.is_dir():
            raise FileNotFoundError(f"Prompts base directory not found at: {prompts_base_path}")
        self.prompts_base_path = prompts_base_path

    def load_prompt(self, prompts_dir: str, filename: str) -> str:
        """
        Returns the content of a single prompt file.

        Raises:
            FileNotFoundError: If the agent folder or the file does not exist.
        """
        agent_prompt_dir = self.prompts_base_path / prompts_dir
        if not agent_prompt_dir.is_dir():
            raise FileNotFoundError(f"Prompt directory for agent '{prompts_dir}' not found at {agent_prompt_dir}")

        prompt_path = agent_prompt_dir / filename
        if not prompt_path.is_file():
            raise FileNotFoundError(f"Prompt file not found at: {prompt_path}")
        return prompt_path.read_text(encoding="utf-8")

    def get_standard_prompts(
        self,
        prompts_dir: str,
        system_filename: str = "system.prompt",
        user_filename: str = "user.prompt",
    ) -> Tuple[str, Optional[str]]:
        """
        Loads the system prompt and, when present, the user prompt template.

        The concierge itself only has a system prompt, so a missing user
        prompt comes back as None.
        """
        system_prompt = self.load_prompt(prompts_dir, system_filename)
        try:
            user_prompt = self.load_prompt(prompts_dir, user_filename)
        except FileNotFoundError:
            user_prompt = None
        return system_prompt, user_prompt
