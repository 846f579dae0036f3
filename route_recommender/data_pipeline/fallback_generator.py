"""
Fallback Data Generators
========================

Synthesizes plausible POIs and weather when real providers return nothing.
Both generators draw from an injected `random.Random`, so a seeded instance
produces the same output every run.

Classes:
    FallbackPOIGenerator: Named, categorized, priced placeholder POIs
    FallbackWeatherGenerator: Weather snapshot drawn from fixed archetypes

Author: Route Recommender Team
"""

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

from .data_models import (
    POI, POICategory, Location, WeatherSnapshot, WeatherCondition
)


DEFAULT_FALLBACK_CATEGORIES = (
    POICategory.RESTAURANTS,
    POICategory.MUSEUMS,
    POICategory.PARKS,
    POICategory.SHOPPING,
    POICategory.HISTORIC_SITES,
    POICategory.ENTERTAINMENT,
)

POI_NAMES: Dict[POICategory, List[str]] = {
    POICategory.RESTAURANTS: ["The Garden Bistro", "Mama's Kitchen", "Riverside Grill",
                              "Urban Spoon", "The Local Table"],
    POICategory.MUSEUMS: ["Heritage Museum", "Art & Culture Center", "History House",
                          "Discovery Museum", "Cultural Gallery"],
    POICategory.PARKS: ["Central Park", "Riverside Gardens", "Memorial Park",
                        "Nature Reserve", "Community Green"],
    POICategory.SHOPPING: ["Main Street Market", "Artisan Quarter", "The Shopping District",
                           "Local Bazaar", "Craft Corner"],
    POICategory.HISTORIC_SITES: ["Old Town Hall", "Heritage Building", "Historic Church",
                                 "Monument Square", "Ancient Ruins"],
    POICategory.ENTERTAINMENT: ["The Grand Theater", "Cinema Complex", "Live Music Venue",
                                "Comedy Club", "Arts Center"],
}
DEFAULT_POI_NAMES = ["Local Attraction"]

POI_DESCRIPTIONS: Dict[POICategory, str] = {
    POICategory.RESTAURANTS: "A beloved local dining spot known for fresh ingredients and authentic flavors.",
    POICategory.MUSEUMS: "Explore fascinating exhibits showcasing local history and culture.",
    POICategory.PARKS: "Beautiful green space perfect for relaxation and outdoor activities.",
    POICategory.SHOPPING: "Discover unique local products and handcrafted items.",
    POICategory.HISTORIC_SITES: "Step back in time and explore the rich heritage of this area.",
    POICategory.ENTERTAINMENT: "Popular venue offering great entertainment and cultural experiences.",
}
DEFAULT_POI_DESCRIPTION = "An interesting local attraction worth visiting."

PRICE_LEVELS: Dict[POICategory, List[int]] = {
    POICategory.RESTAURANTS: [2, 3, 4],
    POICategory.MUSEUMS: [1, 2],
    POICategory.PARKS: [1],
    POICategory.SHOPPING: [2, 3, 4],
    POICategory.HISTORIC_SITES: [1, 2],
    POICategory.ENTERTAINMENT: [2, 3],
}
DEFAULT_PRICE_LEVELS = [2, 3]

OPENING_HOURS: Dict[POICategory, List[str]] = {
    POICategory.RESTAURANTS: ["Mon-Thu: 11:00 AM - 10:00 PM", "Fri-Sat: 11:00 AM - 11:00 PM",
                              "Sun: 12:00 PM - 9:00 PM"],
    POICategory.MUSEUMS: ["Tue-Sun: 10:00 AM - 5:00 PM", "Mon: Closed"],
    POICategory.PARKS: ["Daily: 6:00 AM - 10:00 PM"],
    POICategory.SHOPPING: ["Mon-Sat: 10:00 AM - 8:00 PM", "Sun: 12:00 PM - 6:00 PM"],
    POICategory.HISTORIC_SITES: ["Daily: 9:00 AM - 5:00 PM"],
    POICategory.ENTERTAINMENT: ["Shows: 7:00 PM - 11:00 PM", "Box Office: 12:00 PM - 8:00 PM"],
}
DEFAULT_OPENING_HOURS = ["Daily: 9:00 AM - 6:00 PM"]

STREET_NAMES = ["Main St", "Oak Ave", "Park Rd", "First St", "Market St", "Church St", "Mill Rd"]

# (condition, icon, (min temp, max temp))
WEATHER_ARCHETYPES: List[Tuple[WeatherCondition, str, Tuple[int, int]]] = [
    (WeatherCondition.CLEAR, "☀️", (18, 28)),
    (WeatherCondition.PARTLY_CLOUDY, "⛅", (15, 25)),
    (WeatherCondition.CLOUDY, "☁️", (12, 22)),
    (WeatherCondition.LIGHT_RAIN, "🌦️", (10, 20)),
    (WeatherCondition.SUNNY, "🌞", (20, 30)),
]


def placeholder_photo(query: str) -> str:
    """Placeholder image reference for a search phrase"""
    return f"/placeholder.svg?height=200&width=300&query={quote(query)}"


class FallbackPOIGenerator:
    """
    Builds 2-5 placeholder POIs per category around a location

    Every POI is complete: rating, price level, two photos, opening hours,
    website and phone are always set.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Args:
            rng (random.Random): Source of randomness; seed it for repeatable output
        """
        self.logger = logging.getLogger(__name__)
        self.rng = rng or random.Random()

    def generate(self, location: Location,
                 categories: Sequence[POICategory] = ()) -> List[POI]:
        """
        Generate fallback POIs near a location

        Args:
            location (Location): Center point; POIs land within about 1 km
            categories (Sequence[POICategory]): Categories to cover, defaults
                to the six core categories when empty

        Returns:
            List[POI]: Generated POIs, grouped by category in input order
        """
        target_categories = list(categories) or list(DEFAULT_FALLBACK_CATEGORIES)

        pois = []
        for category in target_categories:
            count = self.rng.randint(2, 5)
            for _ in range(count):
                pois.append(self._generate_poi(location, category))

        self.logger.info(f"Generated {len(pois)} fallback POIs for {len(target_categories)} categories")
        return pois

    def _generate_poi(self, location: Location, category: POICategory) -> POI:
        poi_id = f"fallback_{self.rng.getrandbits(64):016x}"

        return POI(
            id=poi_id,
            name=self.rng.choice(POI_NAMES.get(category, DEFAULT_POI_NAMES)),
            description=POI_DESCRIPTIONS.get(category, DEFAULT_POI_DESCRIPTION),
            category=category,
            location=Location(
                lat=location.lat + (self.rng.random() - 0.5) * 0.02,
                lng=location.lng + (self.rng.random() - 0.5) * 0.02,
                address=self._generate_address(),
            ),
            rating=round(self.rng.uniform(3.0, 5.0), 1),
            price_level=self.rng.choice(PRICE_LEVELS.get(category, DEFAULT_PRICE_LEVELS)),
            photos=[
                placeholder_photo(f"{category.value} interior"),
                placeholder_photo(f"{category.value} exterior"),
            ],
            opening_hours=list(OPENING_HOURS.get(category, DEFAULT_OPENING_HOURS)),
            website=f"https://example.com/{poi_id}",
            phone=self._generate_phone(),
        )

    def _generate_address(self) -> str:
        return f"{self.rng.randint(1, 999)} {self.rng.choice(STREET_NAMES)}"

    def _generate_phone(self) -> str:
        return (f"+1-{self.rng.randint(100, 999)}-{self.rng.randint(100, 999)}"
                f"-{self.rng.randint(1000, 9999)}")


class FallbackWeatherGenerator:
    """Picks a weather archetype uniformly at random and fills in plausible values"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate(self) -> WeatherSnapshot:
        """
        Generate a synthetic weather snapshot

        Returns:
            WeatherSnapshot: Temperature within the archetype's range,
            humidity 40-79 %, wind 5-24 km/h
        """
        condition, icon, (low, high) = self.rng.choice(WEATHER_ARCHETYPES)

        return WeatherSnapshot(
            temperature=float(self.rng.randrange(low, high)),
            condition=condition,
            humidity=float(self.rng.randrange(40, 80)),
            wind_speed=float(self.rng.randrange(5, 25)),
            icon=icon,
        )
