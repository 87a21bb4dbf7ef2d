# onnet_dashboard/services/map_links.py

import re
from urllib.parse import quote

COORDINATES_PATTERN = re.compile(r'^-?\d+(\.\d+)?\s*,\s*-?\d+(\.\d+)?$')


def build_map_links(coordinates=None, address=None):
    """
    Google Maps and Waze links for a customer's location.

    Coordinates ("lat,lng") win over the address. Returns None when there is
    nothing to point at.
    """
    coordinates = (coordinates or '').strip()
    if coordinates and COORDINATES_PATTERN.match(coordinates):
        lat, lng = (part.strip() for part in coordinates.split(','))
        return {
            'gmaps': f'https://www.google.com/maps?q={lat},{lng}',
            'waze': f'https://waze.com/ul?ll={lat},{lng}&navigate=yes',
            'label': f'{lat}, {lng}',
        }

    address = (address or '').strip()
    if not address:
        return None
    query = quote(address, safe="-_.!~*'()")
    return {
        'gmaps': f'https://www.google.com/maps?q={query}',
        'waze': f'https://waze.com/ul?q={query}&navigate=yes',
        'label': address,
    }
