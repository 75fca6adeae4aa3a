"""
Send work units to Gemini and return the raw markdown reply.
Handles rate-limit retries with exponential backoff.
"""

import time
from typing import Callable, Optional

from google import genai
from google.genai import errors, types

from slr_extract.errors import ModelError, RateLimitError
from slr_extract.splitter import FileUnit, TextBatch

EMPTY_REPLY = "No response from AI."


def is_rate_limit(error: BaseException) -> bool:
    """True if the error means "slow down and try again later"."""
    if isinstance(error, RateLimitError):
        return True
    if isinstance(error, errors.APIError) and error.code == 429:
        return True
    message = str(error)
    return "429" in message or "quota" in message.lower() or "RESOURCE_EXHAUSTED" in message


def build_text_prompt(batch: TextBatch) -> str:
    """Prompt for a batch of abstracts."""
    return (
        "Please analyze the following list of papers and extract the data into "
        "the table format specified.\n\n"
        f"Data to Analyze:\n{batch.text}"
    )


def build_file_prompt(unit: FileUnit) -> str:
    """Wrapper text sent alongside an attached paper."""
    return (
        f'Please analyze the attached academic paper titled "{unit.name}" and extract '
        "the data into the table format specified in the system instructions."
    )


class GeminiExtractor:
    """
    Table extractor using Gemini.
    One call per work unit, retried on rate limits only.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "gemini-flash-latest",
        temperature: float = 0.1,
        max_retries: int = 3,
        backoff_base: float = 2.0,
        client=None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.client = client if client is not None else genai.Client(api_key=api_key)
        self.model_name = model_name
        self.temperature = temperature
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.sleep = sleep

    def build_contents(self, unit) -> list:
        """Content parts for one unit: text only, or file bytes + text."""
        if isinstance(unit, FileUnit):
            return [
                types.Content(
                    role="user",
                    parts=[
                        types.Part.from_bytes(data=unit.payload, mime_type=unit.mime_type),
                        types.Part.from_text(text=build_file_prompt(unit)),
                    ]
                )
            ]
        return [build_text_prompt(unit)]

    def invoke(self, unit, instruction: str) -> str:
        """
        Run one unit through the model.

        Args:
            unit: TextBatch or FileUnit
            instruction: System instruction holding the table template

        Returns:
            Raw model text (markdown)

        Raises:
            ModelError: on a non-retryable failure, or once retries run out
        """
        contents = self.build_contents(unit)
        config = types.GenerateContentConfig(
            system_instruction=instruction,
            temperature=self.temperature
        )

        last_error = None
        for attempt in range(self.max_retries):
            try:
                response = self.client.models.generate_content(
                    model=self.model_name,
                    contents=contents,
                    config=config
                )
                return response.text or EMPTY_REPLY

            except Exception as e:
                if not is_rate_limit(e):
                    raise ModelError(str(e), cause=e) from e
                last_error = e

            # Backoff: 2s, 4s, 8s
            wait_time = (2 ** attempt) * self.backoff_base
            print(f"    [!] Rate limited on attempt {attempt + 1}/{self.max_retries}, "
                  f"waiting {wait_time:g}s...")
            self.sleep(wait_time)

        if last_error is None:
            raise ModelError("Failed after multiple retries")
        raise ModelError(str(last_error), cause=last_error) from last_error
