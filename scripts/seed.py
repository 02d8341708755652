#!/usr/bin/env python3
"""
Seed script: creates the default rule set for a demo owner, then runs one
sample call through the pipeline end to end.
Run after migrations: python scripts/seed.py [owner_id]
"""

import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from callqual.api.rules import DEFAULT_RULES
from callqual.config import settings
from callqual.database import async_session_maker
from callqual.pipeline.lifecycle import CallLifecycleController
from callqual.storage.repositories import create_rule, list_rules


DEMO_OWNER = "demo-owner"


async def seed(owner_id: str):
    async with async_session_maker.begin() as session:
        existing = await list_rules(session, owner_id)
        if existing:
            print(f"Owner {owner_id} already has {len(existing)} rules, using existing.")
        else:
            for entry in DEFAULT_RULES:
                await create_rule(
                    session,
                    owner_id=owner_id,
                    name=entry["name"],
                    rule_type=entry["type"],
                    criteria=entry["criteria"],
                    description=entry["description"],
                    is_required=entry["is_required"],
                )
            print(f"Created {len(DEFAULT_RULES)} default rules for {owner_id}.")

    controller = CallLifecycleController.from_settings(settings)
    call = await controller.create_call(
        owner_id, "uploads/sample-call.mp3", file_name="sample-call.mp3"
    )
    await controller.process_batch([call.id])
    detail = await controller.get_call(owner_id, call.id)
    await controller.stop()

    print(f"Call {detail.id}: {detail.status}")
    if detail.qualification:
        q = detail.qualification
        print(f"  {q.overall_status} ({q.rules_passed} passed, {q.rules_failed} failed)")
        for r in q.rule_results:
            mark = "PASS" if r.passed else "FAIL"
            print(f"  [{mark}] {r.rule_name}: {r.explanation}")
    elif detail.error_reason:
        print(f"  error: {detail.error_reason}")


if __name__ == "__main__":
    asyncio.run(seed(sys.argv[1] if len(sys.argv) > 1 else DEMO_OWNER))
