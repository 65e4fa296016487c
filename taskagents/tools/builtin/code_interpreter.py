"""Code interpreter tool running Python snippets in a restricted namespace.

NOTE: The sandbox only restricts built-ins and rejects obviously dangerous
patterns. It is not an isolation boundary.
"""

from __future__ import annotations

import asyncio
import builtins
import io
import math
import re
import sys
import time
import traceback
from contextlib import redirect_stderr, redirect_stdout
from typing import Any

from taskagents.tools.base import (
    PRIORITY_DEFERRED,
    PRIORITY_PREFERRED,
    BaseTool,
    ParameterType,
    ToolParameter,
)

MARKDOWN_BLOCK_PATTERN = re.compile(r"```[ \t]*(\w*)[ \t]*\n(.*?)```", re.DOTALL)
INLINE_COMMAND_PATTERN = re.compile(
    r"(?:run|execute)\s+(?:this\s+)?(?:python\s+)?code\s*:\s*(.+)", re.IGNORECASE | re.DOTALL
)
DEFINITION_PATTERN = re.compile(r"\b(def|class)\s+\w+")
CODE_LINE_PATTERN = re.compile(
    r"^\s*(def |class |import |from |for |while |if |elif |else:|return |print\(|\w+\s*=[^=])"
)


def _deadline_tracer(deadline: float) -> Any:
    """Build a trace function that raises TimeoutError once the deadline passes."""

    def tracer(frame: Any, event: str, arg: Any) -> Any:
        if time.monotonic() > deadline:
            raise TimeoutError("Execution deadline exceeded")
        return tracer

    return tracer


class CodeInterpreterTool(BaseTool):
    """Runs Python code found in a prompt and captures its output.

    Features:
    - Extracts code from fenced blocks, inline commands or code-like lines
    - Captures stdout and stderr
    - Restricted built-ins
    - Output length limit
    """

    KEYWORDS = (
        "code", "run", "execute", "script", "program",
        "python", "calculate", "compute",
        "def", "class", "function",
    )

    SAFE_BUILTINS = {
        "abs": abs,
        "all": all,
        "any": any,
        "bool": bool,
        "chr": chr,
        "dict": dict,
        "divmod": divmod,
        "enumerate": enumerate,
        "filter": filter,
        "float": float,
        "format": format,
        "int": int,
        "isinstance": isinstance,
        "len": len,
        "list": list,
        "map": map,
        "max": max,
        "min": min,
        "ord": ord,
        "pow": pow,
        "print": print,
        "range": range,
        "repr": repr,
        "reversed": reversed,
        "round": round,
        "set": set,
        "sorted": sorted,
        "str": str,
        "sum": sum,
        "tuple": tuple,
        "zip": zip,
        "ValueError": ValueError,
        "Exception": Exception,
    }

    DANGEROUS_PATTERNS = (
        ("open(", "File operations not allowed"),
        ("os.", "OS module access not allowed"),
        ("sys.", "Sys module access not allowed"),
        ("subprocess", "Subprocess not allowed"),
        ("__import__", "Dynamic imports not allowed"),
        ("importlib", "Importlib not allowed"),
        ("eval(", "Eval not allowed"),
        ("exec(", "Exec not allowed"),
        ("globals(", "Globals access not allowed"),
        ("getattr(", "Getattr not allowed"),
        ("setattr(", "Setattr not allowed"),
    )

    def __init__(
        self,
        timeout_seconds: float = 30.0,
        max_output_length: int = 10000,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_output_length = max_output_length

    @property
    def name(self) -> str:
        return "code_interpreter"

    @property
    def description(self) -> str:
        return "Executes Python code safely in a restricted environment"

    @property
    def parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="code",
                type=ParameterType.STRING,
                description="Code to execute",
                required=True,
            ),
        ]

    def match(self, prompt: str) -> bool:
        return (
            self.contains_keywords(prompt, self.KEYWORDS)
            or "```" in prompt
            or bool(DEFINITION_PATTERN.search(prompt))
        )

    def priority(self, prompt: str) -> int:
        if "```" in prompt or "code" in prompt:
            return PRIORITY_PREFERRED
        return PRIORITY_DEFERRED

    async def call(
        self,
        prompt: str,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any] | str:
        code = self.extract_code(prompt or "")

        if not code:
            return "No code found to execute"

        violation = self._security_check(code)
        if violation:
            return {
                "code": code,
                "language": "python",
                "error": violation,
                "formatted": f"Cannot execute: {violation}",
            }

        try:
            output = await asyncio.wait_for(
                asyncio.to_thread(self._run_code, code, time.monotonic() + self.timeout_seconds),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, TimeoutError):
            return {
                "code": code,
                "language": "python",
                "error": f"Timed out after {self.timeout_seconds} seconds",
                "formatted": f"Execution error: timed out after {self.timeout_seconds} seconds",
            }
        except Exception as e:
            return {
                "code": code,
                "language": "python",
                "error": str(e),
                "formatted": f"Execution error: {e}",
            }

        return {
            "code": code,
            "language": "python",
            "result": output,
            "formatted": f"Code execution (python):\n\n```python\n{code}\n```\n\nOutput:\n```\n{output}\n```",
        }

    def extract_parameters(self, prompt: str) -> dict[str, Any]:
        return {"code": self.extract_code(prompt)}

    def extract_code(self, prompt: str) -> str:
        """Pull the code to run out of a free-text prompt."""
        text = prompt.replace("\r\n", "\n").replace("\r", "\n")

        block = MARKDOWN_BLOCK_PATTERN.search(text)
        if block:
            return self._clean(block.group(2))

        inline = INLINE_COMMAND_PATTERN.search(text)
        if inline:
            return self._clean(inline.group(1))

        lines = [line for line in text.split("\n") if CODE_LINE_PATTERN.match(line)]
        if lines:
            start = text.split("\n").index(lines[0])
            return self._clean("\n".join(text.split("\n")[start:]))

        return ""

    @staticmethod
    def _clean(code: str) -> str:
        lines = [line for line in code.strip("\n").split("\n") if not re.match(r"^\s*#", line)]
        return "\n".join(lines).strip("\n").rstrip()

    def _run_code(self, code: str, deadline: float) -> str:
        """Run code in a restricted namespace and return its output.

        Blocks, so it is run in a worker thread. Python-level code is
        interrupted once ``deadline`` (a ``time.monotonic`` value) passes.
        """
        stdout_capture = io.StringIO()
        stderr_capture = io.StringIO()
        namespace: dict[str, Any] = {
            "__builtins__": {**self.SAFE_BUILTINS, "__build_class__": builtins.__build_class__},
            "__name__": "sandbox",
            "math": math,
        }

        compiled = compile(code, "<sandbox>", "exec")
        try:
            with redirect_stdout(stdout_capture), redirect_stderr(stderr_capture):
                sys.settrace(_deadline_tracer(deadline))
                try:
                    exec(compiled, namespace)  # noqa: S102 - restricted namespace
                finally:
                    sys.settrace(None)
        except TimeoutError:
            raise
        except Exception as e:
            raise RuntimeError(
                f"Python execution failed: {e}\n{traceback.format_exc(limit=1)}"
            ) from e

        output = stdout_capture.getvalue().strip()
        if "result" in namespace and not output:
            output = repr(namespace["result"])

        if len(output) > self.max_output_length:
            output = output[: self.max_output_length] + "\n... (truncated)"

        return output

    def _security_check(self, code: str) -> str | None:
        lowered = code.lower()
        for pattern, message in self.DANGEROUS_PATTERNS:
            if pattern in lowered:
                return message
        return None
