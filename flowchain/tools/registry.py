from typing import Dict, Callable, Optional

from flowchain.engine.executor import FunctionExecutor


class TransformRegistry:
    """Registry of named text transforms that can back pipeline executors"""

    def __init__(self):
        """Initialize the registry with the default text transforms."""
        self.tools: Dict[str, Callable[[str], str]] = {}
        self._register_default_tools()

    def register(self, name: str, func: Callable[[str], str]) -> None:
        """Register a new transform in the registry."""
        self.tools[name] = func

    def get(self, name: str) -> Callable[[str], str]:
        """Retrieve a transform by its registered name."""
        if name not in self.tools:
            raise ValueError(f"Tool '{name}' not found")
        return self.tools[name]

    def list_tools(self) -> list:
        """Get list of all registered transform names."""
        return list(self.tools.keys())

    def create_executor(self, name: str, executor_id: Optional[str] = None) -> FunctionExecutor:
        """Wrap a registered transform in a str -> str executor."""
        return FunctionExecutor(executor_id or name, self.get(name), input_type=str, output_type=str)

    def _register_default_tools(self):
        self.register("uppercase", uppercase)
        self.register("lowercase", lowercase)
        self.register("reverse", reverse)
        self.register("strip", strip)
        self.register("title", title)


# Default transform implementations

def uppercase(text: str) -> str:
    return text.upper()


def lowercase(text: str) -> str:
    return text.lower()


def reverse(text: str) -> str:
    return text[::-1]


def strip(text: str) -> str:
    return text.strip()


def title(text: str) -> str:
    return text.title()
