#!/usr/bin/env python3
"""
Prompt Manager for the Pulau Pal assistant
Loads and manages prompts from markdown files
"""

import logging
import os
import re
from typing import Dict, List

logger = logging.getLogger(__name__)

REQUIRED_PROMPTS = ["system_instructions", "fallback_responses", "setup_required", "page_analysis"]


class PromptManager:
    """Manages prompts loaded from markdown file"""

    def __init__(self, prompt_file_path: str = None):
        if prompt_file_path is None:
            # Default path relative to this file
            current_dir = os.path.dirname(os.path.abspath(__file__))
            prompt_file_path = os.path.join(current_dir, "prompts.md")

        self.prompt_file_path = prompt_file_path
        self.prompts = self._load_prompts()

    def _load_prompts(self) -> Dict[str, str]:
        """Load prompts from markdown file"""
        prompts = {}

        if not os.path.exists(self.prompt_file_path):
            logger.warning(f"Prompt file not found: {self.prompt_file_path}")
            return prompts

        with open(self.prompt_file_path, 'r', encoding='utf-8') as f:
            content = f.read()

        # ### headers followed by code blocks
        sections = re.findall(r'### ([^\n]+)\s*```(.*?)```', content, re.DOTALL)
        for header, prompt_content in sections:
            key = header.strip().lower().replace(' ', '_')
            prompts[key] = prompt_content.strip()

        logger.info(f"Loaded {len(prompts)} prompts from {self.prompt_file_path}: {list(prompts.keys())}")
        return prompts

    def get_system_instructions(self) -> str:
        return self.prompts.get("system_instructions", "")

    def get_fallback_responses(self) -> List[str]:
        """Fallback answers, one per line of the section"""
        block = self.prompts.get("fallback_responses", "")
        return [line.strip() for line in block.splitlines() if line.strip()]

    def get_setup_message(self) -> str:
        return self.prompts.get("setup_required", "")

    def get_page_analysis_prompt(self) -> str:
        return self.prompts.get("page_analysis", "")

    def validate_prompts(self) -> Dict[str, bool]:
        """Validate that all required prompts are loaded"""
        return {prompt: bool(self.prompts.get(prompt)) for prompt in REQUIRED_PROMPTS}
