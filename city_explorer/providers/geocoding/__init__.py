from city_explorer.providers.geocoding.google_geocode_provider import GoogleGeocodeProvider

__all__ = ["GoogleGeocodeProvider"]
