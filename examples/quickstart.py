"""orbtrack quickstart — parse a TLE, locate it, and list passes over an observer."""

from datetime import timedelta

from orbtrack import ObserverLocation, parse_tle, predict_passes, propagate, to_geodetic

# ISS (ZARYA) TLE
tle_text = """
ISS (ZARYA)
1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927
2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537
""".strip()

iss = parse_tle(tle_text)

print(f"Satellite: {iss.name}")
print(f"NORAD ID:  {iss.norad_id}")
print(f"Epoch:     {iss.epoch}")
print(f"Incl:      {iss.inclination_deg:.4f}°")
print(f"Period:    {iss.period_minutes:.1f} min")

where = to_geodetic(propagate(iss, iss.epoch))
print(f"At epoch:  {where.latitude_deg:.3f}, {where.longitude_deg:.3f}, {where.altitude_km:.1f} km")

nyc = ObserverLocation(40.7128, -74.006, label="New York")
for w in predict_passes(iss, nyc, iss.epoch, timedelta(days=1), timedelta(seconds=15), 10.0):
    print(f"{w.rise_time:%H:%M:%S} → {w.set_time:%H:%M:%S} | max {w.peak_elevation_deg:.1f}°")
