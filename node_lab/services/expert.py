import json
import logging
import re
from typing import List, Optional

from magic_llm import MagicLLM
from magic_llm.model import ModelChat
from pydantic import ValidationError

from node_lab.services.base import ExpertResult, InlineImage
from node_lab.util.prompts import JSON_DIRECTIVE

logger = logging.getLogger(__name__)


def extract_json_block(text: str) -> Optional[str]:
    """
    Pull a JSON document out of model output: the first fenced block,
    else the outermost braces.
    """
    if not text:
        return None
    matches = re.findall(r'```(?:json)?\s*(.*?)\s*```', text, re.DOTALL)
    if matches:
        return matches[0].strip()
    match = re.search(r'\{.*\}', text, re.DOTALL)
    if match:
        return match.group().strip()
    return None


def parse_expert_output(text: str) -> ExpertResult:
    """
    Parse the model answer into an ExpertResult. Output that is not the
    expected JSON becomes a summary-only result.
    """
    json_content = extract_json_block(text)
    if json_content:
        try:
            return ExpertResult.model_validate(json.loads(json_content))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Expert output is not the expected JSON: %s", e)
    return ExpertResult(display_summary=text or '', outputs=[])


class MagicLLMExpertService:
    """Text generation through magic_llm; the model is asked to answer in JSON."""

    def __init__(self, engine: str, model: str, api_key: str, **extra):
        self.engine = engine
        self.model = model
        args = {'engine': engine, 'model': model, 'private_key': api_key, **extra}
        self.client = MagicLLM(**args)

    async def generate(self,
                       prompt: str,
                       system_instruction: str,
                       images: Optional[List[InlineImage]] = None) -> ExpertResult:
        chat = ModelChat(f"{system_instruction}\n\n{JSON_DIRECTIVE}")
        if images:
            chat.add_user_message(prompt, [image.data_uri for image in images])
        else:
            chat.add_user_message(prompt)

        logger.info("MagicLLMExpertService: generating with engine=%s model=%s images=%d",
                    self.engine, self.model, len(images or []))
        response = await self.client.llm.async_generate(chat)
        return parse_expert_output(response.content)
