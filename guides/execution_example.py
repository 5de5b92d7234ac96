"""Example showing how to define an automation and execute it once.

Uses the in-memory repository and providers, so nothing leaves the process.
"""

import asyncio
import json

from servflow import Action, Automation, AutomationExecutor
from servflow.config import ServflowConfig, TwilioConfig
from servflow.persistence import InMemoryAutomationRepository
from servflow.providers import get_providers


async def main():
    config = ServflowConfig(
        providers="inmemory",
        twilio=TwilioConfig(from_number="+15550001111"),
    )
    repository = InMemoryAutomationRepository()

    automation = Automation(name="Job completed follow-up")
    automation.actions = [
        Action(
            automation_id=automation.id,
            action_type="send_sms",
            sequence_order=1,
            action_config={
                "to_number": "{CustomerPhone}",
                "message": "Hi {CustomerName}, job {JobId} is done. Thanks!",
            },
        ),
        Action(
            automation_id=automation.id,
            action_type="create_task",
            sequence_order=2,
            action_config={"title": "Request a review from {CustomerName}"},
        ),
    ]
    await repository.save_automation(automation)

    executor = AutomationExecutor(
        repository=repository,
        providers=get_providers(config=config),
        config=config,
    )
    result = await executor.execute(
        automation.id,
        {"CustomerName": "Ana", "CustomerPhone": "555-222-3333", "JobId": "42"},
    )
    print(json.dumps(result.to_response(), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
