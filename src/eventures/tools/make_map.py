from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from eventures.config import Settings, settings as default_settings
from eventures.core.models import MapUpdate

MARKER_COLOR = "#e74c3c"
FOCUS_COLOR = "#2980b9"


def _marker_rows(update: MapUpdate) -> list[dict]:
    rows = []
    for marker_id, ap in enumerate(update.points):
        rows.append(
            {
                "id": marker_id,
                "lat": ap.point.lat,
                "lng": ap.point.lon,
                "occurrences": ap.occurrences,
                "focus": marker_id == update.focus_index,
            }
        )
    return rows


def render_map_html(update: MapUpdate, cfg: Optional[Settings] = None, title: str = "Eventures") -> str:
    """
    Leaflet page with one marker per aggregated point.

    Points holding more than one event get a count badge above the pin.
    The view opens on the focused point, or on the default viewpoint when
    nothing is focused.
    """
    cfg = cfg or default_settings
    markers = _marker_rows(update)

    focus = update.focus
    if focus is not None:
        center = [focus.point.lat, focus.point.lon]
        zoom = cfg.focus_zoom
    else:
        center = [cfg.default_center_lat, cfg.default_center_lon]
        zoom = cfg.default_zoom

    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
  <style>
    body {{ margin: 0; font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; }}
    #map {{ height: 100vh; width: 100vw; }}
    .badge {{ background: white; border-radius: 10px; font-weight: bold; text-align: center;
              line-height: 20px; box-shadow: 0 0 2px rgba(0,0,0,0.5); }}
  </style>
</head>
<body>
<div id="map"></div>
<script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
<script>
  const markers = {json.dumps(markers)};

  const map = L.map('map').setView({json.dumps(center)}, {zoom});

  L.tileLayer('https://{{s}}.tile.openstreetmap.org/{{z}}/{{x}}/{{y}}.png', {{
    maxZoom: 18,
    attribution: '&copy; OpenStreetMap contributors'
  }}).addTo(map);

  markers.forEach((m) => {{
    const color = m.focus ? '{FOCUS_COLOR}' : '{MARKER_COLOR}';
    const popup = `
      <b>Marker ${{m.id}}</b><br/>
      <b>Events:</b> ${{m.occurrences}}<br/>
      <b>Lat/Lng:</b> ${{m.lat.toFixed(5)}}, ${{m.lng.toFixed(5)}}
    `;
    L.circleMarker([m.lat, m.lng], {{ radius: 8, color: color, fillOpacity: 0.8 }})
      .addTo(map)
      .bindPopup(popup)
      .on('click', () => map.flyTo([m.lat, m.lng], {cfg.focus_zoom}));

    if (m.occurrences > 1) {{
      L.marker([m.lat, m.lng], {{
        icon: L.divIcon({{ className: 'badge', html: String(m.occurrences), iconSize: [20, 20], iconAnchor: [10, 30] }}),
        interactive: false,
      }}).addTo(map);
    }}
  }});
</script>
</body>
</html>
"""


def write_map(path: Path, update: MapUpdate, cfg: Optional[Settings] = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_map_html(update, cfg), encoding="utf-8")
    return path
