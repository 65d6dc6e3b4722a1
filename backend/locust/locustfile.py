"""
Locust Load Test Suite

The API has no endpoints for creating shows or locations, so scenarios run
against a seeded gallery. Pass the ids through the environment:

  LOAD_SHOW_ID=s1 LOAD_LOCATION_ID=l1 LOAD_ARTIST_ID=a1 \
  LOAD_ARTWORK_IDS=A1,A2,A3,A4 locust -f locustfile.py --tags curation

Run scenarios:
  locust -f locustfile.py --tags curation     # Concurrent reorders of one show
  locust -f locustfile.py --tags assignment   # Assign/reject churn on shared artworks
  locust -f locustfile.py --tags throughput   # Cached curated listing
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random

import httpx
from locust import HttpUser, task, between, tag, events

SHOW_ID = os.environ.get("LOAD_SHOW_ID", "s1")
LOCATION_ID = os.environ.get("LOAD_LOCATION_ID", "l1")
ARTIST_ID = os.environ.get("LOAD_ARTIST_ID", "a1")
ARTWORK_IDS = [i for i in os.environ.get("LOAD_ARTWORK_IDS", "A1,A2").split(",") if i]


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"Curating show {SHOW_ID} with artworks {', '.join(ARTWORK_IDS)}")
    print("=" * 60)


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """After the run the show must still satisfy every invariant."""
    if environment.host is None:
        return

    resp = httpx.get(f"{environment.host}/api/v1/shows/{SHOW_ID}/audit")
    print("\n" + "=" * 60)
    print(f"AUDIT {SHOW_ID}: {resp.status_code} {resp.text}")
    print("=" * 60)


class ConcurrentCuratorUser(HttpUser):
    """
    TEST 1: Concurrency - many curators reorder the same show

    Run: locust -f locustfile.py --tags curation -u 50 -r 25 --run-time 30s

    Every reorder is an optimistic transaction. Expect 200s and some 409s
    once retries are exhausted, never a lost artwork: afterwards
    artworkOrder must still be a permutation of artworkIds.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = {"X-Curator-Id": f"curator-{random.randint(1000, 9999)}"}

    @tag("curation")
    @task
    def shuffle_order(self):
        order = list(ARTWORK_IDS)
        random.shuffle(order)
        with self.client.put(
            f"/api/v1/shows/{SHOW_ID}/order",
            json={"artwork_order": order},
            headers=self.headers,
            name="/api/v1/shows/{id}/order",
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 409):
                resp.success()
            elif resp.status_code == 400:
                # An artwork was rejected concurrently by the assignment scenario
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class AssignmentUser(HttpUser):
    """
    TEST 2: Assignment churn - accept and reject the same artworks

    Run: locust -f locustfile.py --tags assignment -u 30 -r 10 --run-time 60s

    After the run, GET /api/v1/shows/{id}/audit should report consistent.
    """
    wait_time = between(0.05, 0.3)

    @tag("assignment")
    @task(3)
    def assign(self):
        artwork_id = random.choice(ARTWORK_IDS)
        with self.client.put(
            f"/api/v1/artworks/{artwork_id}/assignment",
            json={"show_id": SHOW_ID, "location_id": LOCATION_ID},
            name="/api/v1/artworks/{id}/assignment [assign]",
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("assignment")
    @task(1)
    def reject(self):
        artwork_id = random.choice(ARTWORK_IDS)
        with self.client.delete(
            f"/api/v1/artworks/{artwork_id}/assignment",
            name="/api/v1/artworks/{id}/assignment [reject]",
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 3: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare avg response time, requests/sec and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def curated_listing(self):
        self.client.get(f"/api/v1/shows/{SHOW_ID}/curation", name="/api/v1/shows/{id}/curation [cached]")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 4: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    @tag("edge")
    @task
    def unknown_artwork(self):
        with self.client.put(
            "/api/v1/artworks/does-not-exist/assignment",
            json={"show_id": SHOW_ID},
            catch_response=True,
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Expected 404, got {resp.status_code}")

    @tag("edge")
    @task
    def duplicate_order(self):
        with self.client.put(
            f"/api/v1/shows/{SHOW_ID}/order",
            json={"artwork_order": [ARTWORK_IDS[0], ARTWORK_IDS[0]]},
            catch_response=True,
        ) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"Expected 400, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_show(self):
        with self.client.put(
            f"/api/v1/artworks/{ARTWORK_IDS[0]}/assignment",
            json={"show_id": ""},
            catch_response=True,
        ) as resp:
            if resp.status_code == 422:
                resp.success()
            else:
                resp.failure(f"Expected 422, got {resp.status_code}")

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            f"/api/v1/artists/{ARTIST_ID}/acceptance",
            data="not json at all",
            catch_response=True,
        ) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")
