#!/usr/bin/env python3
"""
Smoke E2E test: drives one script through the whole work pipeline over HTTP.

No AI or YouTube keys required. The three profiles must already exist
(they are normally created by the auth provider on sign-up).

Env vars:
  BASE_URL      (default http://localhost:8000)
  ADMIN_ID      profile id with role admin or manager
  CREATOR_ID    profile id with role content_creator
  EDITOR_ID     profile id with role editor
"""
from __future__ import annotations

import json
import os
import sys
import time
from urllib.request import Request, urlopen
from urllib.error import HTTPError, URLError

BASE_URL = os.environ.get("BASE_URL", "http://localhost:8000").rstrip("/")
ADMIN_ID = os.environ.get("ADMIN_ID", "")
CREATOR_ID = os.environ.get("CREATOR_ID", "")
EDITOR_ID = os.environ.get("EDITOR_ID", "")

SMOKE_TAG = f"smoke_{int(time.time())}"

# ── Helpers ──────────────────────────────────────────────────

class SmokeError(Exception):
    pass


def _req(method: str, path: str, user_id: str, body: dict | None = None, expect: int = 200) -> dict:
    url = f"{BASE_URL}{path}"
    data = json.dumps(body).encode() if body else None
    headers = {"Content-Type": "application/json", "X-User-Id": user_id}
    req = Request(url, data=data, headers=headers, method=method)
    try:
        with urlopen(req, timeout=30) as resp:
            raw = resp.read().decode()
            if resp.status != expect:
                raise SmokeError(f"{method} {path} → {resp.status}, expected {expect}")
            return json.loads(raw) if raw else {}
    except HTTPError as e:
        raw = e.read().decode()[:500]
        if e.code == expect:
            return json.loads(raw) if raw else {}
        raise SmokeError(f"{method} {path} → {e.code}: {raw}")
    except URLError as e:
        raise SmokeError(f"{method} {path} → URLError: {e}")


def step(name: str):
    print(f"\n{'='*60}")
    print(f"  STEP: {name}")
    print(f"{'='*60}")


def ok(msg: str):
    print(f"  ✅ {msg}")


def fail(msg: str):
    print(f"  ❌ {msg}")
    raise SmokeError(msg)


def expect_status(script: dict, status: str):
    if script.get("status") != status:
        fail(f"expected status {status}, got {script.get('status')}")
    ok(f"status = {status}")


# ── Steps ────────────────────────────────────────────────────

def step1_health():
    step("1. Health check")
    data = _req("GET", "/ping", ADMIN_ID)
    if data.get("status") != "ok":
        fail(f"unexpected /ping response: {data}")
    me = _req("GET", "/api/profiles/me", ADMIN_ID)
    if me.get("role") not in ("admin", "manager"):
        fail(f"ADMIN_ID has role {me.get('role')}, expected admin or manager")
    ok(f"server up, acting as {me.get('email') or me['id']}")


def step2_create_script() -> str:
    step("2. Create script")
    script = _req("POST", "/api/scripts", CREATOR_ID, {
        "title": f"SMOKE {SMOKE_TAG}",
        "script": "A short smoke-test script.",
    }, expect=201)
    if script.get("status") is not None:
        fail(f"new script should be outside the pipeline, got {script.get('status')}")
    ok(f"script {script['id']} created")
    return script["id"]


def step3_send_to_work(script_id: str):
    step("3. Send to work")
    _req("POST", f"/api/scripts/{script_id}/send-to-work", CREATOR_ID, expect=403)
    ok("content creator cannot send to work")
    expect_status(_req("POST", f"/api/scripts/{script_id}/send-to-work", ADMIN_ID), "todo")


def step4_content(script_id: str):
    step("4. Content phase")
    script = _req("POST", f"/api/scripts/{script_id}/claim-content", CREATOR_ID)
    expect_status(script, "content_creation")
    _req("POST", f"/api/scripts/{script_id}/claim-content", CREATOR_ID, expect=409)
    ok("second claim rejected")
    _req("POST", f"/api/scripts/{script_id}/complete-content", EDITOR_ID, expect=403)
    ok("editor cannot complete content")
    expect_status(_req("POST", f"/api/scripts/{script_id}/complete-content", CREATOR_ID), "ready_for_edit")


def step5_edit(script_id: str):
    step("5. Edit phase")
    expect_status(_req("POST", f"/api/scripts/{script_id}/claim-edit", EDITOR_ID), "editing")
    expect_status(_req("POST", f"/api/scripts/{script_id}/complete-edit", EDITOR_ID), "ready_to_publish")


def step6_publish(script_id: str) -> dict:
    step("6. Publish")
    script = _req("POST", f"/api/scripts/{script_id}/publish", ADMIN_ID)
    expect_status(script, "published")
    stamps = [
        script["content_assigned_at"],
        script["content_completed_at"],
        script["edit_assigned_at"],
        script["edit_completed_at"],
        script["published_at"],
    ]
    if any(s is None for s in stamps):
        fail(f"missing phase timestamps: {stamps}")
    ok("all phase timestamps set")
    return script


def step7_report(script_id: str):
    step("7. Performance report")
    report = _req("GET", "/api/analytics/performance", ADMIN_ID)
    rows = {row["user_id"]: row for row in report.get("employees", [])}
    for user_id in (CREATOR_ID, EDITOR_ID):
        row = rows.get(user_id)
        if not row or row["completed_tasks"] < 1:
            fail(f"no completed tasks reported for {user_id}")
        ok(f"{user_id}: {row['completed_tasks']} tasks")
    _req("DELETE", f"/api/scripts/{script_id}", ADMIN_ID, expect=204)
    ok("cleanup done")


def main():
    print(f"\n🔬 Smoke E2E Test — {BASE_URL}")
    if not (ADMIN_ID and CREATOR_ID and EDITOR_ID):
        print("  ADMIN_ID, CREATOR_ID and EDITOR_ID must be set")
        sys.exit(2)

    try:
        step1_health()
        script_id = step2_create_script()
        step3_send_to_work(script_id)
        step4_content(script_id)
        step5_edit(script_id)
        step6_publish(script_id)
        step7_report(script_id)
    except SmokeError as e:
        print(f"\n{'='*60}")
        print(f"  ❌ FAIL: {e}")
        print(f"{'='*60}\n")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\n  ⏹ Interrupted")
        sys.exit(130)

    print("\n  ✅ SMOKE PASSED\n")


if __name__ == "__main__":
    main()
