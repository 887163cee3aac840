"""Tests for the planner chat assistant."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

from agents.planner.chat import (
    HISTORY_LIMIT,
    PlannerAssistant,
    build_chat_prompt,
    build_messages,
    fallback_reply,
    welcome_message,
)

ITINERARY = {'destination': 'Rome', 'trip_length': 2, 'traveler_profiles': ['cultural-explorer']}


def test_fallback_reply_keywords():
    assert 'more relaxed' in fallback_reply('Can we chill a bit?')
    assert 'cultural spots' in fallback_reply('More culture please')
    assert 'beach time' in fallback_reply('I want the beach')
    assert 'food experiences' in fallback_reply('FOOD!')
    assert 'Try asking me' in fallback_reply('hello')
    assert fallback_reply('hello').startswith("I understand you'd like to adjust your itinerary. ")


def test_welcome_message():
    assert '2-day trip to Rome' in welcome_message(ITINERARY)


def test_build_messages_keeps_recent_non_empty_turns():
    history = [{'role': 'assistant', 'content': 'Welcome!'}]
    for i in range(12):
        history.append({'role': 'user' if i % 2 == 0 else 'assistant', 'content': f'message {i}'})
    history.append({'role': 'user', 'content': '   '})

    messages = build_messages(history, 'Add a food tour')

    assert messages[0]['role'] == 'user'
    assert messages[-1] == {'role': 'user', 'content': 'Add a food tour'}
    assert len(messages) <= HISTORY_LIMIT + 1
    assert all(m['content'].strip() for m in messages)


def test_build_chat_prompt_lists_plan_by_day():
    activities = [{'id': 1, 'day_number': 1, 'position': 0, 'title': 'Colosseum',
                   'category': 'culture', 'location': 'Piazza del Colosseo'}]
    prompt = build_chat_prompt(ITINERARY, activities)
    assert 'Day 1:' in prompt
    assert '[culture] Colosseum - Piazza del Colosseo' in prompt
    assert 'Day 2: No activities planned yet' in prompt


def test_assistant_without_key_uses_fallback():
    text, suggested = PlannerAssistant().reply(ITINERARY, [], 'more food')
    assert 'food experiences' in text
    assert suggested is None


def test_assistant_returns_tool_suggestions():
    assistant = PlannerAssistant(api_key='test-key')
    assistant.client = MagicMock()
    assistant.client.messages.create.return_value = SimpleNamespace(content=[
        SimpleNamespace(type='text', text='Here is a food-focused plan.'),
        SimpleNamespace(type='tool_use', name='suggest_activities', input={'activities': [
            {'day_number': 1, 'title': 'Trastevere Food Tour', 'category': 'food'},
            {'day_number': 5, 'title': 'Gelato Crawl', 'category': 'food'},
        ]}),
    ])

    text, suggested = assistant.reply(ITINERARY, [], 'Make it about food', [
        {'role': 'user', 'content': 'Hi'}, {'role': 'assistant', 'content': 'Hello!'},
    ])

    assert text == 'Here is a food-focused plan.'
    assert [(a.title, a.day_number) for a in suggested] == [('Trastevere Food Tour', 1), ('Gelato Crawl', 2)]
    kwargs = assistant.client.messages.create.call_args.kwargs
    assert kwargs['tools'][0]['name'] == 'suggest_activities'
    assert kwargs['messages'][-1]['content'] == 'Make it about food'


def test_openai_assistant_returns_tool_suggestions(monkeypatch):
    monkeypatch.setenv('OPENAI_API_KEY', 'sk-test')
    assistant = PlannerAssistant()
    assert assistant.provider == 'openai'

    call = SimpleNamespace(function=SimpleNamespace(
        name='suggest_activities',
        arguments=json.dumps({'activities': [{'day_number': 2, 'title': 'Borghese Gallery', 'category': 'culture'}]}),
    ))
    assistant.client = MagicMock()
    assistant.client.chat.completions.create.return_value = SimpleNamespace(choices=[
        SimpleNamespace(message=SimpleNamespace(content=None, tool_calls=[call])),
    ])

    text, suggested = assistant.reply(ITINERARY, [], 'More art please')

    assert text == 'Here are 1 suggested activities for your trip.'
    assert [(a.title, a.day_number) for a in suggested] == [('Borghese Gallery', 2)]
    kwargs = assistant.client.chat.completions.create.call_args.kwargs
    assert kwargs['messages'][0]['role'] == 'system'
    assert kwargs['tools'][0]['function']['name'] == 'suggest_activities'
