"""
NodeSync - Decision Providers.

The reconciler asks an operator three kinds of questions:

- ask(prompt) -> bool                 yes/no confirmation
- choose(prompt, options) -> option   pick one of several strings
- prompt(text) -> str                 free-form value

ConsoleDecisions asks on the terminal. ScriptedDecisions replays a
prepared list of answers and records every question, for tests and
unattended runs.
"""

from typing import Any, Callable, List, Optional, Sequence, Tuple


class DecisionProvider:
    """Interface for operator decisions."""

    def ask(self, prompt: str) -> bool:
        raise NotImplementedError

    def choose(self, prompt: str, options: Sequence[str]) -> str:
        raise NotImplementedError

    def prompt(self, text: str) -> str:
        raise NotImplementedError


class ConsoleDecisions(DecisionProvider):
    """Interactive decisions on stdin/stdout."""

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        self.input_fn = input_fn
        self.output_fn = output_fn

    def ask(self, prompt: str) -> bool:
        while True:
            answer = self.input_fn(f"{prompt} [y/n] ").strip().lower()
            if answer in ('y', 'yes'):
                return True
            if answer in ('n', 'no'):
                return False

    def choose(self, prompt: str, options: Sequence[str]) -> str:
        self.output_fn(prompt)
        for number, option in enumerate(options, 1):
            self.output_fn(f"  [{number}] {option}")

        while True:
            answer = self.input_fn("Enter your choice: ").strip()
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return options[int(answer) - 1]
            if answer in options:
                return answer

    def prompt(self, text: str) -> str:
        return self.input_fn(text).strip()


class ScriptedDecisions(DecisionProvider):
    """
    Replays answers in order.

    Answers for choose() may be the option text or its 0-based index.
    Running out of answers raises LookupError.

    Attributes:
        asked: (kind, prompt, options) for every question, in order
    """

    def __init__(self, answers: Optional[Sequence[Any]] = None):
        self.answers: List[Any] = list(answers or [])
        self.asked: List[Tuple[str, str, Tuple[str, ...]]] = []

    def _next(self, kind: str, prompt: str, options: Sequence[str] = ()) -> Any:
        self.asked.append((kind, prompt, tuple(options)))
        if not self.answers:
            raise LookupError(f"no scripted answer for {kind}: {prompt}")
        return self.answers.pop(0)

    def ask(self, prompt: str) -> bool:
        return bool(self._next('ask', prompt))

    def choose(self, prompt: str, options: Sequence[str]) -> str:
        answer = self._next('choose', prompt, options)
        if isinstance(answer, int):
            return options[answer]
        if answer not in options:
            raise ValueError(f"{answer!r} is not one of {list(options)}")
        return answer

    def prompt(self, text: str) -> str:
        return str(self._next('prompt', text))
