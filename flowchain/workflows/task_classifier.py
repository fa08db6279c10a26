from flowchain.agents.executor import AgentExecutor
from flowchain.agents.factory import AgentFactory
from flowchain.engine.graph import Graph, new_builder


CLASSIFIER_INSTRUCTIONS = (
    "You are a task classifier. Analyze the input text and classify it into categories like "
    "'urgent', 'important', 'routine', or 'informational'. Return ONLY the category name, nothing else."
)

SUMMARIZER_INSTRUCTIONS = (
    "You are a text summarizer. Create a concise summary of the input text in one or two sentences."
)


def create_task_classifier_pipeline(factory: AgentFactory) -> Graph:
    """Classify the task, then summarize the classification. Output comes from the summarizer."""
    classifier_agent = factory.create_agent(
        executor_type="TaskClassifier",
        instructions=CLASSIFIER_INSTRUCTIONS,
        name="TaskClassifierAgent",
    )
    summarizer_agent = factory.create_agent(
        executor_type="Summarizer",
        instructions=SUMMARIZER_INSTRUCTIONS,
        name="TextSummarizerAgent",
    )

    classifier = AgentExecutor(
        "ClassifierExecutor",
        classifier_agent,
        input_converter=lambda task: f"Classify this task: {task}",
        input_type=str,
        output_type=str,
    )
    summarizer = AgentExecutor(
        "SummarizerExecutor",
        summarizer_agent,
        input_converter=lambda text: f"Summarize this text: {text}",
        input_type=str,
        output_type=str,
    )

    builder = new_builder(classifier)
    builder.add_edge(classifier, summarizer).mark_output(summarizer)
    return builder.build()


SAMPLE_TASK = (
    "Fix the critical security vulnerability in the authentication system "
    "that is causing production issues"
)
