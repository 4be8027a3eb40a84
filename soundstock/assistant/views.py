import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.utils import timezone
from .context import build_inventory_context
from .mistral import AssistantError, ask_mistral

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a professional virtual assistant helping to manage a sound equipment rental inventory.
Answer questions from the provided context accurately, politely and informatively.

Use Markdown to format answers, put important points in **bold**
and leave blank lines between paragraphs so the answer is easy to read.

Answer **only from the data given in the context**.
If a question is outside the context, say politely that the information is not available yet.
Do not guess when you do not know."""


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def ask(request):
    """Answer a question about the inventory using the language model"""
    question = request.data.get('question')
    if not isinstance(question, str) or not question.strip():
        return Response({'error': 'Question must not be empty'}, status=status.HTTP_400_BAD_REQUEST)
    question = question.strip()

    context = build_inventory_context()
    messages = [
        {'role': 'system', 'content': SYSTEM_PROMPT},
        {'role': 'user', 'content': f"Context:\n{context}\n\nQuestion: {question}"},
    ]

    try:
        answer = ask_mistral(messages)
    except AssistantError as e:
        logger.error(f"Assistant failed for user {request.user.id}: {str(e)}")
        return Response({
            'error': 'Could not process the question. Check that the assistant API key is configured.',
            'detail': str(e),
        }, status=status.HTTP_502_BAD_GATEWAY)

    return Response({
        'question': question,
        'answer': answer,
        'timestamp': timezone.now(),
    })
