"""Generate itineraries with an LLM, or from templates when no API key is set."""

import json
from typing import Any, Dict, List, Optional

from .llm import OPENAI, create_client, default_model, select_provider
from .models import Accommodation, Activity, GeneratedItinerary, TripRequest
from .ordering import reindex, sort_activities
from .profiles import (
    accommodation_for_budget,
    activities_per_day,
    budget_description,
    get_profile,
)

GENERATION_PROMPT = """You are an expert travel designer. Plan a day-by-day itinerary.

Destination: {destination}
Trip length: {trip_length} days
Pace: {pace} ({per_day} activities per day)
Budget: {budget}
Traveler profiles:
{profiles}

Return ONLY a JSON object with this shape:
```json
{{
  "summary": "2-3 sentences describing the plan",
  "activities": [
    {{
      "day_number": 1,
      "title": "Name of the activity",
      "description": "One or two sentences",
      "location": "Specific place name",
      "city_name": "City the activity is in",
      "category": "food | nature | culture | adventure | relaxation | shopping | nightlife | transport | accommodation | other",
      "duration_minutes": 120,
      "estimated_cost_min": 0,
      "estimated_cost_max": 20,
      "latitude": 0.0,
      "longitude": 0.0,
      "time_of_day": "morning | afternoon | evening"
    }}
  ],
  "accommodations": [
    {{
      "name": "Hotel name",
      "type": "hotel | hostel | airbnb | guesthouse | resort | camping | other",
      "location": "Neighborhood",
      "price_per_night": 100,
      "latitude": 0.0,
      "longitude": 0.0
    }}
  ]
}}
```

Schedule exactly {per_day} activities for each of the {trip_length} days, in visiting order.
Costs are per person in USD. Use real places with accurate coordinates."""


def _format_profiles(profile_ids: List[str]) -> str:
    lines = []
    for profile_id in profile_ids:
        profile = get_profile(profile_id)
        if profile:
            lines.append(f"- {profile['title']}: {profile['description']} (keywords: {', '.join(profile['keywords'])})")
        else:
            lines.append(f"- {profile_id}")
    return "\n".join(lines) if lines else "- General traveler"


def build_generation_prompt(request: TripRequest) -> str:
    """Build the itinerary generation prompt for a trip request."""
    return GENERATION_PROMPT.format(
        destination=request.destination,
        trip_length=request.trip_length,
        pace=request.travel_pace,
        per_day=activities_per_day(request.travel_pace),
        budget=budget_description(request.budget),
        profiles=_format_profiles(request.traveler_profiles),
    )


def extract_json(text: str) -> Any:
    """Pull a JSON value out of an LLM response, fenced or bare."""
    if "```json" in text:
        json_str = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        json_str = text.split("```")[1].split("```")[0].strip()
    else:
        json_str = text.strip()
        start = json_str.find("{")
        end = json_str.rfind("}")
        if start != -1 and end > start:
            json_str = json_str[start:end + 1]
    return json.loads(json_str)


def normalize_activities(raw_activities: List[Dict[str, Any]], trip_length: int) -> List[Activity]:
    """Normalize LLM-provided activities and reindex their positions.

    Day numbers are clamped into 1..trip_length; the order within a day is
    the order the activities were given in.
    """
    rows = []
    for index, raw in enumerate(raw_activities):
        if not isinstance(raw, dict) or not raw.get("title"):
            continue
        activity = Activity.from_dict(raw, position=index)
        activity.day_number = min(max(activity.day_number, 1), trip_length)
        rows.append({"id": index, **activity.to_dict()})

    ordered = reindex(sort_activities(rows))
    activities = []
    for row in ordered:
        row.pop("id")
        activities.append(Activity.from_dict(row, day_number=row["day_number"], position=row["position"]))
    return activities


# Sample activities used when no LLM is configured
def _sample_activities(destination: str, profiles: List[str]) -> List[Dict[str, Any]]:
    activities = [
        {
            "title": f"Explore {destination} Old Town",
            "description": "Wander through historic streets and discover local culture",
            "location": f"{destination} Old Town",
            "category": "culture",
            "duration_minutes": 180,
            "estimated_cost_min": 0,
            "estimated_cost_max": 20,
        },
        {
            "title": "Local Food Tour",
            "description": "Taste authentic local cuisine and street food",
            "location": f"{destination} Food District",
            "category": "food",
            "duration_minutes": 120,
            "estimated_cost_min": 30,
            "estimated_cost_max": 60,
        },
        {
            "title": "Visit Main Museum",
            "description": "Discover the history and art of the region",
            "location": f"{destination} National Museum",
            "category": "culture",
            "duration_minutes": 120,
            "estimated_cost_min": 10,
            "estimated_cost_max": 25,
        },
        {
            "title": "Sunset at Viewpoint",
            "description": "Watch a stunning sunset from the best viewpoint",
            "location": f"{destination} Scenic Viewpoint",
            "category": "nature",
            "duration_minutes": 90,
            "estimated_cost_min": 0,
            "estimated_cost_max": 10,
        },
        {
            "title": "Local Market Visit",
            "description": "Browse fresh produce, crafts, and local goods",
            "location": f"{destination} Central Market",
            "category": "shopping",
            "duration_minutes": 90,
            "estimated_cost_min": 10,
            "estimated_cost_max": 50,
        },
    ]

    if "nature-lover" in profiles or "active-globetrotter" in profiles:
        activities.append({
            "title": "Hiking Trail",
            "description": "Scenic hiking with beautiful nature views",
            "location": f"{destination} National Park",
            "category": "adventure",
            "duration_minutes": 240,
            "estimated_cost_min": 0,
            "estimated_cost_max": 15,
        })

    if "beach-bum" in profiles:
        activities.append({
            "title": "Beach Day",
            "description": "Relax on the beach and enjoy water activities",
            "location": f"{destination} Beach",
            "category": "relaxation",
            "duration_minutes": 240,
            "estimated_cost_min": 0,
            "estimated_cost_max": 30,
        })

    if "wellness" in profiles:
        activities.append({
            "title": "Yoga & Meditation Session",
            "description": "Start your day with wellness activities",
            "location": f"{destination} Wellness Center",
            "category": "relaxation",
            "duration_minutes": 90,
            "estimated_cost_min": 20,
            "estimated_cost_max": 50,
        })

    return activities


def build_template_itinerary(request: TripRequest) -> GeneratedItinerary:
    """Build an itinerary from sample activities without calling an LLM."""
    per_day = activities_per_day(request.travel_pace)
    summary = (
        f"I've created a {request.trip_length}-day itinerary for {request.destination} "
        f"tailored to your {request.travel_pace} pace and {request.budget} budget. "
        f"This plan includes {per_day} activities per day, focusing on "
        f"{', '.join(request.traveler_profiles)} experiences."
    )

    samples = _sample_activities(request.destination, request.traveler_profiles)
    activities = []
    for day in range(1, request.trip_length + 1):
        for i in range(per_day):
            # Rotate through the samples so consecutive days differ
            sample = samples[((day - 1) * per_day + i) % len(samples)]
            activities.append(Activity.from_dict(sample, day_number=day, position=len(activities)))

    acc_type, price = accommodation_for_budget(request.budget)
    accommodations = [
        Accommodation(
            name=f"{request.destination} Central Hotel",
            type=acc_type,
            location=f"{request.destination} City Center",
            price_per_night=price,
        )
    ]

    return GeneratedItinerary(summary=summary, activities=activities, accommodations=accommodations)


class ItineraryGenerator:
    """Generate itineraries for trip requests."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 provider: Optional[str] = None):
        self.provider, self.api_key = select_provider(api_key, provider)
        self.model = model or default_model(self.provider)
        self.client = create_client(self.provider, self.api_key)

    @property
    def uses_llm(self) -> bool:
        return self.client is not None

    def _complete(self, prompt: str, max_tokens: int) -> str:
        """Send a single user prompt and return the reply text."""
        if self.provider == OPENAI:
            response = self.client.chat.completions.create(
                model=self.model,
                max_completion_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
            return response.choices[0].message.content or ""

        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.content[0].text

    def generate(self, request: TripRequest) -> GeneratedItinerary:
        """Generate an itinerary. LLM errors propagate to the caller."""
        if not self.uses_llm:
            print(f"[GENERATION] No LLM API key set, using template itinerary for {request.destination}")
            return build_template_itinerary(request)

        per_day = activities_per_day(request.travel_pace)
        text = self._complete(build_generation_prompt(request),
                              min(1500 + request.trip_length * per_day * 250, 16000))

        data = extract_json(text)
        if not isinstance(data, dict):
            raise ValueError("Itinerary response was not a JSON object")

        activities = normalize_activities(data.get("activities") or [], request.trip_length)
        accommodations = [
            Accommodation.from_dict(acc)
            for acc in (data.get("accommodations") or [])
            if isinstance(acc, dict) and acc.get("name")
        ]

        print(f"[GENERATION] Generated {len(activities)} activities for {request.destination}")
        return GeneratedItinerary(
            summary=data.get("summary") or f"Your {request.trip_length}-day trip to {request.destination}.",
            activities=activities,
            accommodations=accommodations,
        )
