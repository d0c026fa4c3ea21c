from city_explorer.providers.events.eventbrite_provider import EventbriteProvider

__all__ = ["EventbriteProvider"]
