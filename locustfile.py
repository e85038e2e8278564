"""
Locust load tests for the charity API.

Install: pip install locust
Run: locust -f locustfile.py --host=http://127.0.0.1:4000

For headless: locust -f locustfile.py --host=http://127.0.0.1:4000 \
    --users 10 --spawn-rate 2 --run-time 1m --headless
"""

import os
from locust import HttpUser, task, between


class CharityAPIUser(HttpUser):
    wait_time = between(1, 3)

    def on_start(self):
        """Optional: operator key for the admin-only endpoints."""
        self.admin_key = os.getenv("LOCUST_ADMIN_KEY")

    @task(2)
    def ping(self):
        self.client.get("/__ping")

    @task(10)
    def gallery(self):
        self.client.get("/api/gallery")

    @task(6)
    def recent_updates(self):
        self.client.get("/api/recent-updates")

    @task(6)
    def upcoming_events(self):
        self.client.get("/api/upcoming-events")

    @task(3)
    def donation_content(self):
        self.client.get("/api/donation-content")

    @task(2)
    def cases(self):
        self.client.get("/api/cases")

    @task(1)
    def metrics(self):
        if not self.admin_key:
            return
        self.client.get("/admin/metrics", headers={"X-Admin-Key": self.admin_key})
