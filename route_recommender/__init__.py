"""
Weather-Aware Route Recommender
===============================

Plans a route between two points and recommends places to stop along the
way, ranked by weather, time of day, season and traveler preferences.

Author: Route Recommender Team
Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Route Recommender Team"


def get_version():
    """Return the current version of the application"""
    return __version__


def get_info():
    """Return basic information about the application"""
    return {
        "name": "Route Recommender",
        "version": __version__,
        "author": __author__,
        "description": "Checkpoint-based POI recommendations along a travel route"
    }
