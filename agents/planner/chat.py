"""AI assistant that helps customize an itinerary through chat."""

import json
from typing import Any, Dict, List, Optional, Tuple

from .generator import normalize_activities
from .llm import OPENAI, create_client, default_model, select_provider
from .models import Activity
from .ordering import group_by_day
from .profiles import VALID_CATEGORIES

# Number of previous messages sent to the LLM
HISTORY_LIMIT = 10

SUGGEST_ACTIVITIES_TOOL = {
    "name": "suggest_activities",
    "description": "Suggest activities for the user's itinerary. Use this whenever the user asks to add, replace, or change activities, or to adjust the pace or focus of the trip. Return the full list of activities you recommend.",
    "input_schema": {
        "type": "object",
        "properties": {
            "activities": {
                "type": "array",
                "description": "Suggested activities in visiting order",
                "items": {
                    "type": "object",
                    "properties": {
                        "day_number": {"type": "integer", "description": "Day of the trip (1, 2, 3...)"},
                        "title": {"type": "string", "description": "Name of the activity"},
                        "description": {"type": "string", "description": "One or two sentences"},
                        "location": {"type": "string", "description": "Specific place name"},
                        "category": {"type": "string", "enum": VALID_CATEGORIES},
                        "duration_minutes": {"type": "integer"},
                        "estimated_cost_min": {"type": "integer"},
                        "estimated_cost_max": {"type": "integer"},
                        "latitude": {"type": "number"},
                        "longitude": {"type": "number"},
                        "time_of_day": {"type": "string", "description": "morning, afternoon or evening"},
                    },
                    "required": ["day_number", "title", "category"],
                },
            }
        },
        "required": ["activities"],
    },
}

# Same tool in the OpenAI function-calling format
OPENAI_SUGGEST_ACTIVITIES_TOOL = {
    "type": "function",
    "function": {
        "name": SUGGEST_ACTIVITIES_TOOL["name"],
        "description": SUGGEST_ACTIVITIES_TOOL["description"],
        "parameters": SUGGEST_ACTIVITIES_TOOL["input_schema"],
    },
}


def welcome_message(itinerary: Dict[str, Any]) -> str:
    """Greeting shown when the planner chat opens."""
    return (
        f"Welcome! I'm your AI travel assistant. I'm here to help you customize your "
        f"{itinerary.get('trip_length')}-day trip to {itinerary.get('destination')}. "
        f"You can ask me to adjust activities, add specific experiences, or change the pace of your trip."
    )


def fallback_reply(message: str) -> str:
    """Keyword-based reply used when no LLM is configured."""
    lower = message.lower()
    response = "I understand you'd like to adjust your itinerary. "

    if "chill" in lower or "relax" in lower:
        response += "I'll make the itinerary more relaxed by reducing activities and adding more downtime."
    elif "cultural" in lower or "culture" in lower:
        response += "I'll add more cultural spots like museums, historical sites, and local experiences."
    elif "beach" in lower:
        response += "I'll incorporate more beach time and coastal activities into your plan."
    elif "food" in lower:
        response += "I'll add more food experiences including restaurants, food tours, and cooking classes."
    else:
        response += "I can help you customize your itinerary. Try asking me to add specific types of activities or adjust the pace."

    return response


def build_chat_prompt(itinerary: Dict[str, Any], activities: List[Dict[str, Any]]) -> str:
    """Build the system prompt describing the trip and its current plan."""
    destination = itinerary.get("destination", "the destination")
    trip_length = itinerary.get("trip_length") or 1
    profiles = ", ".join(itinerary.get("traveler_profiles") or []) or "not specified"

    plan = ""
    for bucket in group_by_day(activities, trip_length):
        plan += f"\n  Day {bucket['day_number']}:"
        if not bucket["activities"]:
            plan += " No activities planned yet"
        for activity in bucket["activities"]:
            location = activity.get("location")
            loc_str = f" - {location}" if location else ""
            time_str = f" ({activity['time_of_day']})" if activity.get("time_of_day") else ""
            plan += f"\n    - [{activity.get('category', 'other')}] {activity.get('title')}{loc_str}{time_str}"

    return f"""You are a friendly travel assistant helping customize a {trip_length}-day trip to {destination}.

Travel pace: {itinerary.get('travel_pace') or 'balanced'}
Budget: {itinerary.get('budget') or 'medium'}
Traveler profiles: {profiles}

Current itinerary by day:{plan}

Answer briefly and conversationally. When the user wants changes to the plan,
call the suggest_activities tool with the activities you recommend, using day
numbers between 1 and {trip_length}. Do not invent days beyond the trip."""


def build_messages(history: List[Dict[str, Any]], message: str) -> List[Dict[str, str]]:
    """Convert chat history into LLM messages, keeping recent non-empty turns."""
    messages = []
    for msg in (history or [])[-HISTORY_LIMIT:]:
        if not isinstance(msg, dict):
            continue
        content = str(msg.get("content") or "").strip()
        role = msg.get("role")
        if content and role in ("user", "assistant"):
            messages.append({"role": role, "content": content})

    # The API requires the first message to come from the user
    while messages and messages[0]["role"] != "user":
        messages.pop(0)

    messages.append({"role": "user", "content": message})
    return messages


class PlannerAssistant:
    """Chat with an LLM about an itinerary."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 provider: Optional[str] = None):
        self.provider, self.api_key = select_provider(api_key, provider)
        self.model = model or default_model(self.provider)
        self.client = create_client(self.provider, self.api_key)

    def _ask_anthropic(self, system: str, messages: List[Dict[str, str]]) -> Tuple[str, Optional[list]]:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=4096,
            system=system,
            messages=messages,
            tools=[SUGGEST_ACTIVITIES_TOOL],
        )

        text = ""
        raw = None
        for block in response.content:
            if block.type == "text":
                text += block.text
            elif block.type == "tool_use" and block.name == "suggest_activities":
                raw = block.input.get("activities") or []
        return text, raw

    def _ask_openai(self, system: str, messages: List[Dict[str, str]]) -> Tuple[str, Optional[list]]:
        response = self.client.chat.completions.create(
            model=self.model,
            max_completion_tokens=4096,
            messages=[{"role": "system", "content": system}] + messages,
            tools=[OPENAI_SUGGEST_ACTIVITIES_TOOL],
        )

        message = response.choices[0].message
        raw = None
        for call in message.tool_calls or []:
            if call.function.name == "suggest_activities":
                arguments = json.loads(call.function.arguments or "{}")
                raw = arguments.get("activities") or []
        return message.content or "", raw

    def reply(self, itinerary: Dict[str, Any], activities: List[Dict[str, Any]], message: str,
              history: Optional[List[Dict[str, Any]]] = None) -> Tuple[str, Optional[List[Activity]]]:
        """Answer a chat message.

        Returns the response text and, when the assistant proposed changes,
        the suggested activities (otherwise None).
        """
        if self.client is None:
            return fallback_reply(message), None

        system = build_chat_prompt(itinerary, activities)
        messages = build_messages(history or [], message)
        if self.provider == OPENAI:
            response_text, raw = self._ask_openai(system, messages)
        else:
            response_text, raw = self._ask_anthropic(system, messages)

        suggested = None
        if raw is not None:
            suggested = normalize_activities(raw, itinerary.get("trip_length") or 1)

        if not response_text.strip():
            if suggested:
                response_text = f"Here are {len(suggested)} suggested activities for your trip."
            else:
                response_text = fallback_reply(message)

        print(f"[CHAT] Response length: {len(response_text)}, suggested activities: {len(suggested) if suggested else 0}")
        return response_text.strip(), suggested
