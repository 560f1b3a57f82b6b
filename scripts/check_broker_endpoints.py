#!/usr/bin/env python3
"""
Broker smoke check

Walks one instance through provision -> bind -> unbind -> deprovision
against a running broker and prints the status of every call.

Usage:
    python scripts/check_broker_endpoints.py [--url http://127.0.0.1:8980]
"""
import argparse
import sys
import uuid

import requests

REQUEST_TIMEOUT = 30


def _call(method: str, url: str, expected: set, **kwargs) -> bool:
    try:
        r = requests.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)
    except requests.RequestException as e:
        print(f"{method} {url}: ERROR - {e}")
        return False
    ok = r.status_code in expected
    print(f"{method} {url}: {r.status_code} {'OK' if ok else 'UNEXPECTED'}")
    if not ok:
        print(r.text[:1000])
    return ok


def main() -> int:
    parser = argparse.ArgumentParser(description="Smoke-check a running NFS broker")
    parser.add_argument("--url", default="http://127.0.0.1:8980")
    args = parser.parse_args()

    base_url = args.url.rstrip("/")
    instance_id = f"smoke-{uuid.uuid4().hex[:8]}"
    binding_id = f"{instance_id}-binding"
    instance_url = f"{base_url}/v2/service_instances/{instance_id}"
    binding_url = f"{instance_url}/service_bindings/{binding_id}"

    provision_body = {
        "service_id": "nfs-service-guid",
        "plan_id": "free-plan-guid",
        "organization_guid": "smoke-org",
        "space_guid": "smoke-space",
        "parameters": {},
    }
    bind_body = {
        "service_id": "nfs-service-guid",
        "plan_id": "free-plan-guid",
        "app_guid": "smoke-app",
        "parameters": {"readonly": True},
    }

    steps = [
        ("GET", f"{base_url}/v2/catalog", {200}, {}),
        ("PUT", instance_url, {201}, {"json": provision_body}),
        ("PUT", instance_url, {200}, {"json": provision_body}),
        ("PUT", binding_url, {201}, {"json": bind_body}),
        ("GET", binding_url, {200}, {}),
        ("DELETE", binding_url, {200}, {}),
        ("DELETE", instance_url, {200}, {}),
        ("DELETE", instance_url, {410}, {}),
    ]

    failures = 0
    for method, url, expected, kwargs in steps:
        if not _call(method, url, expected, **kwargs):
            failures += 1

    print(f"\n{len(steps) - failures}/{len(steps)} checks passed")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
