"""Traveler profiles, pace, budget and category options used by the planner."""

from typing import Dict, List, Optional


TRAVELER_PROFILES = [
    {
        "id": "active-globetrotter",
        "emoji": "🧗🏻‍♂️",
        "title": "The Active Globetrotter",
        "description": "Adventure-seeking travelers who prioritize physical activities like hiking, climbing, and outdoor sports",
        "keywords": ["adventure", "hiking", "climbing", "outdoors", "sports", "active"],
    },
    {
        "id": "eco-conscious",
        "emoji": "🦜",
        "title": "The Eco-Conscious Traveler",
        "description": "Environmentally responsible travelers focused on sustainable tourism and eco-friendly practices",
        "keywords": ["sustainable", "eco-friendly", "green", "environment", "conservation", "responsible"],
    },
    {
        "id": "van-lifer",
        "emoji": "🚐",
        "title": "The Van Lifer",
        "description": "Freedom-loving road trippers who enjoy traveling by van and camping",
        "keywords": ["van life", "road trip", "camping", "freedom", "nomadic", "mobile"],
    },
    {
        "id": "off-grid",
        "emoji": "🏕",
        "title": "The Off-the-Grid Traveler",
        "description": "Adventurers seeking remote destinations and wilderness experiences",
        "keywords": ["remote", "wilderness", "off-grid", "isolation", "nature", "rustic"],
    },
    {
        "id": "digital-nomad",
        "emoji": "💻",
        "title": "The Digital Nomad",
        "description": "Remote workers combining travel with work, seeking good wifi and coworking spaces",
        "keywords": ["remote work", "wifi", "coworking", "work-travel", "flexible", "connected"],
    },
    {
        "id": "wellness",
        "emoji": "🧘‍♂️",
        "title": "The Wellness Traveler",
        "description": "Health-focused travelers seeking yoga, meditation, spas, and mindful experiences",
        "keywords": ["wellness", "yoga", "meditation", "spa", "health", "mindfulness", "relaxation"],
    },
    {
        "id": "backpacker",
        "emoji": "🎒",
        "title": "The Backpacker",
        "description": "Budget-conscious travelers staying in hostels and seeking authentic local experiences",
        "keywords": ["budget", "hostels", "backpacking", "authentic", "local", "frugal"],
    },
    {
        "id": "cultural-explorer",
        "emoji": "🗺",
        "title": "The Cultural Explorer",
        "description": "History and culture enthusiasts visiting museums, historical sites, and local traditions",
        "keywords": ["culture", "history", "museums", "heritage", "traditions", "learning"],
    },
    {
        "id": "beach-bum",
        "emoji": "🏝",
        "title": "The Beach Bum",
        "description": "Sun and sea lovers seeking coastal destinations and water activities",
        "keywords": ["beach", "ocean", "swimming", "surfing", "coastal", "tropical", "sun"],
    },
    {
        "id": "nature-lover",
        "emoji": "🌳",
        "title": "The Nature Lover",
        "description": "Nature enthusiasts exploring national parks, wildlife, and natural wonders",
        "keywords": ["nature", "wildlife", "national parks", "forests", "mountains", "scenery"],
    },
    {
        "id": "family-traveler",
        "emoji": "👨‍👩‍👧",
        "title": "The Family Traveler",
        "description": "Families seeking kid-friendly activities and comfortable accommodations",
        "keywords": ["family", "kids", "children", "family-friendly", "safe", "educational"],
    },
]

TRAVEL_PACE_OPTIONS = [
    {"value": "relaxed", "label": "Relaxed", "emoji": "🐌", "description": "1-2 activities per day, lots of downtime"},
    {"value": "moderate", "label": "Moderate", "emoji": "🚶", "description": "2-3 activities per day, balanced schedule"},
    {"value": "balanced", "label": "Balanced", "emoji": "⚖️", "description": "3-4 activities per day, good mix of action and rest"},
    {"value": "active", "label": "Active", "emoji": "🏃", "description": "4-5 activities per day, busy but manageable"},
    {"value": "packed", "label": "Packed", "emoji": "⚡", "description": "5+ activities per day, maximize every moment"},
]

BUDGET_OPTIONS = [
    {"value": "low", "label": "Budget", "emoji": "💰", "symbol": "$", "description": "Hostels, street food, free activities"},
    {"value": "medium", "label": "Moderate", "emoji": "💵", "symbol": "$$", "description": "Mid-range hotels, local restaurants, paid attractions"},
    {"value": "high", "label": "Comfortable", "emoji": "💎", "symbol": "$$$", "description": "Nice hotels, good restaurants, premium experiences"},
    {"value": "luxury", "label": "Luxury", "emoji": "👑", "symbol": "$$$$", "description": "Luxury hotels, fine dining, exclusive experiences"},
]

ACTIVITY_CATEGORIES = [
    {"value": "food", "label": "Food & Dining", "emoji": "🍽️", "color": "#F59E0B"},
    {"value": "nature", "label": "Nature & Outdoors", "emoji": "🌳", "color": "#10B981"},
    {"value": "culture", "label": "Culture & History", "emoji": "🏛️", "color": "#8B5CF6"},
    {"value": "adventure", "label": "Adventure & Sports", "emoji": "🏔️", "color": "#EF4444"},
    {"value": "relaxation", "label": "Relaxation & Wellness", "emoji": "🧘", "color": "#06B6D4"},
    {"value": "shopping", "label": "Shopping", "emoji": "🛍️", "color": "#EC4899"},
    {"value": "nightlife", "label": "Nightlife", "emoji": "🌃", "color": "#6366F1"},
    {"value": "transport", "label": "Transportation", "emoji": "✈️", "color": "#8B5CF6"},
    {"value": "accommodation", "label": "Accommodation", "emoji": "🏨", "color": "#3B82F6"},
    {"value": "other", "label": "Other", "emoji": "📍", "color": "#71717A"},
]

ACCOMMODATION_TYPES = [
    {"value": "hotel", "label": "Hotel", "emoji": "🏨"},
    {"value": "hostel", "label": "Hostel", "emoji": "🛏️"},
    {"value": "airbnb", "label": "Airbnb", "emoji": "🏠"},
    {"value": "guesthouse", "label": "Guesthouse", "emoji": "🏡"},
    {"value": "resort", "label": "Resort", "emoji": "🏖️"},
    {"value": "camping", "label": "Camping", "emoji": "⛺"},
    {"value": "other", "label": "Other", "emoji": "📍"},
]

# Activities scheduled per day for each pace
ACTIVITIES_PER_DAY = {
    "relaxed": 2,
    "moderate": 3,
    "balanced": 4,
    "active": 5,
    "packed": 6,
}
DEFAULT_ACTIVITIES_PER_DAY = 4

DEFAULT_PACE = "balanced"
DEFAULT_BUDGET = "medium"
MAX_TRAVELER_PROFILES = 4

# Budget -> (accommodation type, price per night)
BUDGET_ACCOMMODATION = {
    "low": ("hostel", 30),
    "medium": ("hotel", 80),
    "high": ("hotel", 150),
    "luxury": ("resort", 300),
}

VALID_CATEGORIES = [c["value"] for c in ACTIVITY_CATEGORIES]
VALID_PACES = [p["value"] for p in TRAVEL_PACE_OPTIONS]
VALID_BUDGETS = [b["value"] for b in BUDGET_OPTIONS]
VALID_PROFILE_IDS = [p["id"] for p in TRAVELER_PROFILES]
VALID_ACCOMMODATION_TYPES = [a["value"] for a in ACCOMMODATION_TYPES]


def normalize_category(category: Optional[str]) -> str:
    """Return the category if known, otherwise 'other'."""
    if category and category in VALID_CATEGORIES:
        return category
    return "other"


def get_category_info(category: Optional[str]) -> Dict[str, str]:
    """Look up display info for a category, falling back to 'other'."""
    value = normalize_category(category)
    for info in ACTIVITY_CATEGORIES:
        if info["value"] == value:
            return info
    return ACTIVITY_CATEGORIES[-1]


def get_profile(profile_id: str) -> Optional[Dict]:
    for profile in TRAVELER_PROFILES:
        if profile["id"] == profile_id:
            return profile
    return None


def activities_per_day(pace: Optional[str]) -> int:
    return ACTIVITIES_PER_DAY.get(pace or "", DEFAULT_ACTIVITIES_PER_DAY)


def budget_description(budget: Optional[str]) -> str:
    for option in BUDGET_OPTIONS:
        if option["value"] == budget:
            return f"{option['label']} ({option['symbol']}): {option['description']}"
    return budget or DEFAULT_BUDGET


def accommodation_for_budget(budget: Optional[str]) -> tuple:
    """Return (accommodation type, price per night) for a budget level."""
    return BUDGET_ACCOMMODATION.get(budget or "", ("hotel", 300))


def get_all_options() -> Dict[str, List[Dict]]:
    """All option lists, as served to the planner forms."""
    return {
        "traveler_profiles": TRAVELER_PROFILES,
        "travel_paces": TRAVEL_PACE_OPTIONS,
        "budgets": BUDGET_OPTIONS,
        "activity_categories": ACTIVITY_CATEGORIES,
        "accommodation_types": ACCOMMODATION_TYPES,
    }
