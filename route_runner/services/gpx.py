from __future__ import annotations

from xml.sax.saxutils import escape, quoteattr

from route_runner.services.elevation import SAMPLE_EVERY
from route_runner.services.storage import RouteData

GPX_CREATOR = "Route Runner API"


def _trackpoint(lng: float, lat: float, elevation: float | None) -> str:
    ele = f"\n      <ele>{elevation}</ele>" if elevation is not None else ""
    return f'    <trkpt lat="{lat}" lon="{lng}">{ele}\n    </trkpt>'


def generate_gpx(route: RouteData) -> str:
    elevation = route.elevation or []
    trackpoints = []
    for index, (lng, lat) in enumerate(route.geometry.coordinates):
        sample_index = index // SAMPLE_EVERY
        trackpoints.append(_trackpoint(lng, lat, elevation[sample_index] if sample_index < len(elevation) else None))

    name = escape(route.name, {'"': "&quot;", "'": "&apos;"})
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<gpx version="1.1" creator={quoteattr(GPX_CREATOR)} xmlns="http://www.topografix.com/GPX/1/1">',
            "  <metadata>",
            f"    <name>{name}</name>",
            f"    <time>{escape(route.created_at)}</time>",
            "  </metadata>",
            "  <trk>",
            f"    <name>{name}</name>",
            "    <trkseg>",
            *trackpoints,
            "    </trkseg>",
            "  </trk>",
            "</gpx>",
        ]
    )
