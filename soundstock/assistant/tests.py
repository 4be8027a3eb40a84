"""
Tests for the AI assistant; the Mistral HTTP call is always mocked
"""
from unittest import mock

import requests
from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework import status
from soundstock.assistant.context import build_inventory_context, format_text
from soundstock.assistant.mistral import AssistantError, ask_mistral
from soundstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient


def mistral_response(content, status_code=200):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = {'choices': [{'message': {'role': 'assistant', 'content': content}}]}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f'{status_code} Error')
    else:
        response.raise_for_status.return_value = None
    return response


class FormatTextTests(TestCase):

    def test_collapses_whitespace(self):
        self.assertEqual(format_text('  Main \n  Speaker\t'), 'Main Speaker')

    def test_missing_values(self):
        self.assertEqual(format_text(None), '-')
        self.assertEqual(format_text('   '), '-')


class InventoryContextTests(TestCase):

    def setUp(self):
        cache.clear()

    def test_context_sections(self):
        speaker = TestDataFactory.create_equipment(name='Main  Speaker', category='Speaker', stock=4)
        TestDataFactory.create_equipment(name='Mixer', category='Mixer', stock=2)
        event = TestDataFactory.create_event(title='City Concert', location='Central Park')
        TestDataFactory.create_reservation(event, speaker, quantity=2)
        TestDataFactory.create_damaged(speaker, quantity=1, description=None)

        context = build_inventory_context()
        self.assertIn('## Equipment', context)
        self.assertIn('**Main Speaker**', context)
        # 4 - 2 reserved - 1 damaged + 2 mixers
        self.assertIn('**Total stock:** 3 units', context)
        self.assertIn('**City Concert**', context)
        self.assertIn('Main Speaker x2', context)
        self.assertIn('Reason: -', context)
        self.assertIn('Repair status: pending', context)

    def test_empty_inventory(self):
        context = build_inventory_context()
        self.assertIn('_No equipment data available._', context)
        self.assertIn('_No events recorded yet._', context)
        self.assertIn('_No damaged equipment recorded._', context)

    def test_equipment_limit(self):
        for i in range(55):
            TestDataFactory.create_equipment(name=f'Cable {i}', category='Cable', stock=1)
        context = build_inventory_context()
        self.assertIn('**Total equipment:** 50', context)


@override_settings(MISTRAL_API_KEY='test-key', MISTRAL_MODEL='open-mistral-7b')
class AskMistralTests(TestCase):

    @mock.patch('soundstock.assistant.mistral.requests.post')
    def test_returns_answer(self, mock_post):
        mock_post.return_value = mistral_response('  **3** speakers left  ')
        answer = ask_mistral([{'role': 'user', 'content': 'How many speakers?'}])
        self.assertEqual(answer, '**3** speakers left')

        kwargs = mock_post.call_args.kwargs
        self.assertEqual(kwargs['json']['model'], 'open-mistral-7b')
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer test-key')
        self.assertIn('timeout', kwargs)

    @mock.patch('soundstock.assistant.mistral.requests.post')
    def test_chunked_content(self, mock_post):
        mock_post.return_value = mistral_response([{'type': 'text', 'text': 'Hello'}, 'world'])
        self.assertEqual(ask_mistral([]), 'Hello world')

    @mock.patch('soundstock.assistant.mistral.requests.post')
    def test_empty_content_fallback(self, mock_post):
        mock_post.return_value = mistral_response(None)
        self.assertEqual(ask_mistral([]), 'Sorry, the assistant returned no answer.')

    @mock.patch('soundstock.assistant.mistral.requests.post')
    def test_http_error_raises(self, mock_post):
        mock_post.return_value = mistral_response('nope', status_code=401)
        with self.assertRaises(AssistantError):
            ask_mistral([])

    @mock.patch('soundstock.assistant.mistral.requests.post')
    def test_timeout_raises(self, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(AssistantError):
            ask_mistral([])

    @override_settings(MISTRAL_API_KEY='')
    @mock.patch('soundstock.assistant.mistral.requests.post')
    def test_missing_key_raises_without_request(self, mock_post):
        with self.assertRaises(AssistantError):
            ask_mistral([])
        mock_post.assert_not_called()


@override_settings(MISTRAL_API_KEY='test-key')
class AskAPITests(TestCase):
    """Test the /ai/ask/ endpoint"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        TestDataFactory.create_equipment(name='Wireless Mic', category='Microphone', stock=6)

    @mock.patch('soundstock.assistant.mistral.requests.post')
    def test_ask(self, mock_post):
        mock_post.return_value = mistral_response('You have **6** wireless mics.')
        response = self.client.post('/api/v1/ai/ask/', {'question': ' How many mics? '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['question'], 'How many mics?')
        self.assertEqual(response.data['answer'], 'You have **6** wireless mics.')
        self.assertIn('timestamp', response.data)

        messages = mock_post.call_args.kwargs['json']['messages']
        self.assertEqual(messages[0]['role'], 'system')
        self.assertIn('Wireless Mic', messages[1]['content'])
        self.assertTrue(messages[1]['content'].endswith('Question: How many mics?'))

    def test_blank_question(self):
        response = self.client.post('/api/v1/ai/ask/', {'question': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/ai/ask/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch('soundstock.assistant.mistral.requests.post')
    def test_upstream_failure_is_502(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('down')
        response = self.client.post('/api/v1/ai/ask/', {'question': 'Hello?'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertIn('error', response.data)

    @override_settings(MISTRAL_API_KEY='')
    def test_missing_key_is_502(self):
        response = self.client.post('/api/v1/ai/ask/', {'question': 'Hello?'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.post('/api/v1/ai/ask/', {'question': 'Hello?'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
