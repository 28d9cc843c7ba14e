import pytest

import otp.server

# "_p~iF~ps|U_ulLnnqC_mqNvxq`@" is the polyline from Google's documentation:
# (38.5, -120.2), (40.7, -120.95), (43.252, -126.453)
ONE_POINT = "_p~iF~ps|U"
TWO_POINTS = "_p~iF~ps|U_ulLnnqC"
THREE_POINTS = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"

# 2020-01-01 09:00:00 UTC
START_MS = 1577869200000


def make_plan():
    return {
        "requestParameters": {"fromPlace": "38.5,-120.2", "toPlace": "43.252,-126.453"},
        "plan": {
            "itineraries": [
                {
                    "duration": 1800,
                    "startTime": START_MS,
                    "endTime": START_MS + 1800 * 1000,
                    "walkTime": 600,
                    "transitTime": 1100,
                    "waitingTime": 100,
                    "walkDistance": 700.5,
                    "transfers": 0,
                    "fare": {"fare": {"regular": {"cents": 250, "currency": {"currencyCode": "GBP"}}}},
                    "legs": [
                        {
                            "mode": "WALK",
                            "distance": 700.5,
                            "duration": 600.0,
                            "startTime": START_MS,
                            "endTime": START_MS + 600 * 1000,
                            "from": {"name": "Origin", "lat": 38.5, "lon": -120.2},
                            "to": {"name": "High Street", "lat": 40.7, "lon": -120.95},
                            "route": "",
                            "legGeometry": {"points": TWO_POINTS, "length": 2},
                            "steps": [
                                {
                                    "distance": 100,
                                    "elevation": [
                                        {"first": 0, "second": 10},
                                        {"first": 100, "second": 12},
                                    ],
                                },
                                {"distance": 50, "elevation": "0,12,50,15"},
                            ],
                        },
                        {
                            "mode": "BUS",
                            "distance": 5200.0,
                            "duration": 1200.0,
                            "startTime": START_MS + 600 * 1000,
                            "endTime": START_MS + 1800 * 1000,
                            "from": {"name": "High Street"},
                            "to": {"name": "Destination"},
                            "route": "X1",
                            "agencyName": "Stagecoach",
                            "legGeometry": {"points": THREE_POINTS, "length": 3},
                        },
                    ],
                },
                {
                    "duration": 900,
                    "startTime": START_MS,
                    "endTime": START_MS + 900 * 1000,
                    "walkTime": 0,
                    "transitTime": 0,
                    "waitingTime": 0,
                    "walkDistance": 0,
                    "transfers": 0,
                    "legs": [
                        {
                            "mode": "CAR",
                            "distance": 9000.0,
                            "duration": 900.0,
                            "startTime": START_MS,
                            "endTime": START_MS + 900 * 1000,
                            "from": {"name": "Origin"},
                            "to": {"name": "Destination"},
                            "legGeometry": {"points": ONE_POINT, "length": 1},
                        }
                    ],
                },
            ]
        },
    }


@pytest.fixture
def sample_plan():
    return make_plan()


@pytest.fixture
def otp_dir(tmp_path):
    """<tmp>/otp.jar and <tmp>/data/graphs/default"""
    data_dir = tmp_path / "data"
    (data_dir / "graphs" / "default").mkdir(parents=True)
    jar = tmp_path / "otp.jar"
    jar.write_text("")
    return jar, data_dir


@pytest.fixture
def with_graph(otp_dir):
    jar, data_dir = otp_dir
    (data_dir / "graphs" / "default" / "Graph.obj").write_text("")
    return jar, data_dir


@pytest.fixture
def java8(monkeypatch):
    """pretend Java 8 is installed"""
    monkeypatch.setattr(otp.server, "check_java_version", lambda: 1.8)


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Stands in for requests.Session, answers every GET with the queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.headers = {}
        self.calls = []

    def get(self, url, params=None, timeout=None, headers=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response
