import pytest

from conftest import make_plan
from otp.batch import as_points, pair_points, plan_many
from otp.errors import OTPPlanError


class MockClient:
    """Answers every plan with the sample plan, except trips to a 'nowhere' point."""

    def __init__(self, nowhere=None):
        self.nowhere = nowhere
        self.calls = []

    def plan(self, from_place, to_place, **kwargs):
        self.calls.append((from_place, to_place, kwargs))
        if to_place == self.nowhere:
            raise OTPPlanError(404, "PATH_NOT_FOUND", "No trip found")
        return make_plan()


def test_as_points_single_pair():
    assert as_points((50.7, -3.5), "from_places").shape == (1, 2)


@pytest.mark.parametrize("places", [[], [1, 2, 3], [[1, 2, 3]], [[1, None]]])
def test_as_points_rejects(places):
    with pytest.raises(ValueError):
        as_points(places, "from_places")


def test_pair_points_one_to_many():
    origins, destinations = pair_points(
        as_points((50.7, -3.5), "a"),
        as_points([(50.8, -3.4), (50.9, -3.3), (51.0, -3.2)], "b"),
    )
    assert origins.shape == destinations.shape == (3, 2)
    assert origins[2].tolist() == [50.7, -3.5]


def test_pair_points_length_mismatch():
    with pytest.raises(ValueError, match="same length"):
        pair_points(as_points([(1, 1), (2, 2)], "a"), as_points([(1, 1), (2, 2), (3, 3)], "b"))


def test_plan_many_one_to_many():
    client = MockClient()

    result = plan_many(
        client,
        (50.7, -3.5),
        [(50.8, -3.4), (50.9, -3.3)],
        from_ids=["home"],
        to_ids=["work", "gym"],
        workers=2,
        mode="TRANSIT,WALK",
    )

    assert result.ok
    # three legs per sample plan, two trips
    assert len(result.frame) == 6
    assert result.frame["from_id"].unique().tolist() == ["home"]
    assert result.frame["to_id"].unique().tolist() == ["work", "gym"]
    assert result.frame["to_place"].unique().tolist() == ["50.8,-3.4", "50.9,-3.3"]
    assert list(result.frame.columns[:4]) == ["from_id", "to_id", "from_place", "to_place"]
    assert all(kwargs == {"mode": "TRANSIT,WALK"} for _, _, kwargs in client.calls)


def test_plan_many_collects_failures():
    client = MockClient(nowhere=(0.0, 0.0))

    result = plan_many(client, [(50.7, -3.5), (50.6, -3.6)], [(50.8, -3.4), (0.0, 0.0)])

    assert not result.ok
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.index == 1
    assert failure.to_place == (0.0, 0.0)
    assert "No trip found" in failure.error
    assert len(result.frame) == 3


def test_plan_many_everything_fails():
    client = MockClient(nowhere=(0.0, 0.0))
    result = plan_many(client, (50.7, -3.5), (0.0, 0.0), get_geometry=False)
    assert result.frame.empty
    assert len(result.failures) == 1
    assert list(result.frame.columns[:2]) == ["from_place", "to_place"]


def test_plan_many_everything_fails_keeps_id_columns():
    client = MockClient(nowhere=(0.0, 0.0))
    result = plan_many(client, (50.7, -3.5), (0.0, 0.0), from_ids=["home"], to_ids=["sea"])
    assert result.frame.empty
    assert list(result.frame.columns[:4]) == ["from_id", "to_id", "from_place", "to_place"]


def test_plan_many_id_count_must_match():
    with pytest.raises(ValueError, match="to_ids"):
        plan_many(MockClient(), (50.7, -3.5), [(50.8, -3.4), (50.9, -3.3)], to_ids=["work"])


def test_plan_many_workers():
    with pytest.raises(ValueError):
        plan_many(MockClient(), (50.7, -3.5), (50.8, -3.4), workers=0)
