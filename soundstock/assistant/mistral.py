"""
Client for the Mistral chat completions API
"""
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

EMPTY_ANSWER = 'Sorry, the assistant returned no answer.'


class AssistantError(Exception):
    """The language model could not be reached or answered with an error"""


def _content_to_text(content):
    """Message content is either a string or a list of chunks"""
    if isinstance(content, list):
        parts = []
        for chunk in content:
            if isinstance(chunk, str):
                parts.append(chunk)
            elif isinstance(chunk, dict):
                parts.append(chunk.get('text') or '')
        return ' '.join(part for part in parts if part)
    return content or ''


def ask_mistral(messages):
    """
    Send a chat completion request and return the answer text.

    Args:
        messages: list of {'role': 'system'|'user'|'assistant', 'content': str}

    Raises:
        AssistantError: API key missing, network failure, non-2xx response
            or a malformed payload
    """
    api_key = settings.MISTRAL_API_KEY
    if not api_key:
        raise AssistantError('MISTRAL_API_KEY is not configured')

    payload = {
        'model': settings.MISTRAL_MODEL,
        'messages': messages,
    }
    headers = {
        'Authorization': f'Bearer {api_key}',
        'Content-Type': 'application/json',
        'Accept': 'application/json',
    }

    try:
        response = requests.post(
            settings.MISTRAL_API_URL,
            json=payload,
            headers=headers,
            timeout=settings.MISTRAL_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.Timeout:
        logger.warning(f"Mistral request timed out after {settings.MISTRAL_TIMEOUT}s")
        raise AssistantError('The assistant took too long to answer')
    except requests.exceptions.RequestException as e:
        logger.error(f"Mistral request failed: {str(e)}")
        raise AssistantError(f'Assistant request failed: {str(e)}')
    except ValueError as e:
        logger.error(f"Mistral returned invalid JSON: {str(e)}")
        raise AssistantError('Assistant returned an invalid response')

    try:
        content = data['choices'][0]['message'].get('content')
    except (KeyError, IndexError, TypeError, AttributeError):
        logger.error(f"Unexpected Mistral payload: {data!r}")
        raise AssistantError('Assistant returned an unexpected response')

    answer = _content_to_text(content).strip()
    logger.info(f"Mistral answered ({len(answer)} chars) using {settings.MISTRAL_MODEL}")
    return answer or EMPTY_ANSWER
