from shapely.geometry import LineString, Point

from conftest import ONE_POINT, THREE_POINTS, make_plan
from otp.geometry import decode_geometry, decode_points, elevation_profile, leg_geometry


def test_decode_points_swaps_to_lon_lat():
    assert decode_points(THREE_POINTS) == [
        (-120.2, 38.5),
        (-120.95, 40.7),
        (-126.453, 43.252),
    ]


def test_decode_geometry_line():
    line = decode_geometry(THREE_POINTS)
    assert isinstance(line, LineString)
    assert list(line.coords)[0] == (-120.2, 38.5)


def test_decode_geometry_single_point():
    point = decode_geometry(ONE_POINT)
    assert isinstance(point, Point)
    assert (point.x, point.y) == (-120.2, 38.5)


def test_decode_geometry_empty():
    assert decode_geometry("") is None
    assert decode_geometry(None) is None
    assert leg_geometry({"mode": "WALK"}) is None


def test_elevation_profile_offsets_steps():
    walk_leg = make_plan()["plan"]["itineraries"][0]["legs"][0]

    profile = elevation_profile(walk_leg)

    assert list(profile.columns) == ["distance", "elevation"]
    assert profile["distance"].tolist() == [0.0, 100.0, 100.0, 150.0]
    assert profile["elevation"].tolist() == [10.0, 12.0, 12.0, 15.0]


def test_elevation_profile_without_steps():
    assert elevation_profile({"mode": "CAR"}).empty
