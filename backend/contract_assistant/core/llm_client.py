import asyncio
import os
import time
from typing import Optional

import openai

from contract_assistant.core.exceptions import ConfigurationError
from contract_assistant.core.gpt_cache import gpt_cache
from contract_assistant.core.model_config import ANALYSIS_CONFIG, MODEL_CONFIG, RATE_LIMIT_CONFIG
from contract_assistant.utils.logger import logger


def get_api_key() -> str:
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise ConfigurationError("OpenAI API key not found in environment variables")
    return api_key


async def call_openai_api(system_prompt: str, user_prompt: str, purpose: str = "analysis",
                          timeout: Optional[float] = None, use_cache: bool = True) -> str:
    """
    Call the OpenAI chat completions API with retry logic.

    Returns the plain-text answer, or an empty string once every attempt has
    failed. Callers treat an empty answer as a failed call.
    """
    settings = MODEL_CONFIG.get(purpose, MODEL_CONFIG["analysis"])
    max_retries = RATE_LIMIT_CONFIG["max_retries"]
    retry_delay = RATE_LIMIT_CONFIG["base_delay"]
    timeout = timeout or RATE_LIMIT_CONFIG["request_timeout"]
    api_key = get_api_key()

    cache_key = f"{settings['model']}\n{system_prompt}\n{user_prompt}"
    if use_cache and ANALYSIS_CONFIG["use_caching"]:
        cached = await gpt_cache.get(cache_key)
        if cached:
            logger.info(f"Using cached {purpose} response")
            return cached

    user_prompt_preview = user_prompt[:100] + "..." if len(user_prompt) > 100 else user_prompt
    logger.info(f"Calling {settings['model']} for {purpose}")
    logger.debug(f"User prompt: {user_prompt_preview}")

    start_time = time.time()

    def sync_openai_call():
        client = openai.OpenAI(api_key=api_key)
        response = client.chat.completions.create(
            model=settings["model"],
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            temperature=settings["temperature"],
            max_tokens=settings["max_tokens"]
        )
        return response.choices[0].message.content or ""

    loop = asyncio.get_running_loop()

    for attempt in range(max_retries):
        try:
            future = loop.run_in_executor(None, sync_openai_call)
            response_content = await asyncio.wait_for(future, timeout=timeout)

            logger.info(f"Model call for {purpose} successful in {time.time() - start_time:.2f} seconds")

            if use_cache and ANALYSIS_CONFIG["use_caching"] and response_content:
                await gpt_cache.set(cache_key, response_content)

            return response_content

        except asyncio.TimeoutError:
            logger.error(f"OpenAI API call timed out (attempt {attempt+1}/{max_retries})")
        except (openai.AuthenticationError, openai.BadRequestError) as e:
            # Retrying cannot fix these
            logger.error(f"OpenAI API call rejected: {str(e)}")
            return ""
        except Exception as e:
            logger.warning(f"OpenAI API call failed (attempt {attempt+1}/{max_retries}): {str(e)}")

        if attempt < max_retries - 1:
            await asyncio.sleep(retry_delay)
            retry_delay *= 2

    logger.error(f"OpenAI API call for {purpose} failed after {max_retries} attempts")
    return ""
