"""
Console demo: run the built-in pipelines and print their events.

    python -m flowchain.demo [path/to/appsettings.json]

The task classifier pipeline only runs when the settings file exists.
"""

import asyncio
import logging
import sys
from pathlib import Path

from flowchain.agents import AgentFactory, AgentSettings, create_chat_client
from flowchain.engine import ConsoleReporter, run
from flowchain.workflows import (
    create_task_classifier_pipeline,
    create_text_pipeline,
    SAMPLE_TASK,
    SAMPLE_TEXT,
)


async def run_text_pipeline() -> None:
    print("=== Uppercase -> Reverse ===\n")
    pipeline_run = run(create_text_pipeline(), SAMPLE_TEXT, sinks=[ConsoleReporter()])
    await pipeline_run.execute()


async def run_task_classifier(settings_path: Path) -> None:
    print("\n=== Task Classifier -> Summarizer ===\n")
    settings = AgentSettings.from_file(str(settings_path))
    factory = AgentFactory(create_chat_client(settings), settings.deployment_name, enable_caching=True)
    graph = create_task_classifier_pipeline(factory)
    print(f"Created {factory.cached_agent_count} agents using the factory\n")

    print(f"Input Task: {SAMPLE_TASK}\n")
    pipeline_run = run(graph, SAMPLE_TASK, sinks=[ConsoleReporter()])
    await pipeline_run.execute()


async def main(settings_file: str = "appsettings.json") -> None:
    await run_text_pipeline()

    settings_path = Path(settings_file)
    if settings_path.exists():
        await run_task_classifier(settings_path)
    else:
        print(f"\nSkipping agent pipeline: {settings_path} not found")


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    asyncio.run(main(*sys.argv[1:2]))
