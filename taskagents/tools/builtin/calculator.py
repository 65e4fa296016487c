"""Calculator tool for mathematical expressions found in prompts.

Expressions are evaluated by walking the parsed AST and applying only
whitelisted operators, functions and constants. Nothing is passed to eval().
"""

from __future__ import annotations

import ast
import math
import operator
import re
from typing import Any

from taskagents.tools.base import (
    PRIORITY_DEFERRED,
    PRIORITY_PREFERRED,
    BaseTool,
    ParameterType,
    ToolParameter,
)

FUNCTION_NAMES = r"sqrt|sin|cos|tan|log|ln|exp|abs|round|ceil|floor"

_OPERAND = r"(?:-?\d+(?:\.\d+)?|\w+\([^()]+\)|\([^()]+\))"
MATH_EXPR_PATTERN = re.compile(rf"({_OPERAND}\s*(?:[+\-*/]\s*{_OPERAND}\s*)+)")
FUNC_CALL_PATTERN = re.compile(rf"\b(?:{FUNCTION_NAMES})\s*\([^)]+\)", re.IGNORECASE)
QUOTED_EXPR_PATTERN = re.compile(r"\"([^\"]+)\"|'([^']+)'")
MATH_OPERATOR_PATTERN = re.compile(r"\d+\s*[+\-*/]\s*\d+")
MATH_FUNCTION_PATTERN = re.compile(rf"\b(?:{FUNCTION_NAMES})\s*\(", re.IGNORECASE)
CLEAN_EXTRA_WORDS_PATTERN = re.compile(r"\b(is|what|equals?|result|answer|the)\b", re.IGNORECASE)
CLEAN_NON_MATH_PATTERN = re.compile(r"[^\d+\-*/().\s]")
VALID_MATH_EXPRESSION_PATTERN = re.compile(r"\d+(?:\.\d+)?\s*[+\-*/]\s*\d+(?:\.\d+)?")


class CalculatorTool(BaseTool):
    """Evaluates the mathematical expression contained in a prompt.

    Supports:
    - Basic arithmetic: +, -, *, /, //, %, **
    - Math functions: sqrt, sin, cos, tan, log (base 10), ln, exp, abs, ...
    - Constants: pi, e
    """

    KEYWORDS = (
        "calculate", "compute", "math", "equation", "formula",
        "add", "subtract", "multiply", "divide",
        "sum", "difference", "product", "quotient",
        "plus", "minus", "times", "divided",
        "+", "-", "*", "/", "=", "equals",
    )

    OPERATORS = {
        ast.Add: operator.add,
        ast.Sub: operator.sub,
        ast.Mult: operator.mul,
        ast.Div: operator.truediv,
        ast.FloorDiv: operator.floordiv,
        ast.Mod: operator.mod,
        ast.Pow: operator.pow,
        ast.USub: operator.neg,
        ast.UAdd: operator.pos,
    }

    FUNCTIONS = {
        "abs": abs,
        "round": round,
        "min": min,
        "max": max,
        "sin": math.sin,
        "cos": math.cos,
        "tan": math.tan,
        "sqrt": math.sqrt,
        "log": math.log10,
        "ln": math.log,
        "exp": math.exp,
        "floor": math.floor,
        "ceil": math.ceil,
        "pow": pow,
    }

    CONSTANTS = {
        "pi": math.pi,
        "e": math.e,
    }

    @property
    def name(self) -> str:
        return "calculator"

    @property
    def description(self) -> str:
        return "Performs mathematical calculations and evaluates expressions"

    @property
    def parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="expression",
                type=ParameterType.STRING,
                description="Mathematical expression to evaluate (e.g., '2 + 2', '15 * 3.14', 'sqrt(16)')",
                required=True,
            ),
        ]

    def match(self, prompt: str) -> bool:
        return (
            self.contains_keywords(prompt, self.KEYWORDS)
            or bool(MATH_OPERATOR_PATTERN.search(prompt))
            or bool(MATH_FUNCTION_PATTERN.search(prompt))
        )

    def priority(self, prompt: str) -> int:
        if "calculate" in prompt or MATH_OPERATOR_PATTERN.search(prompt):
            return PRIORITY_PREFERRED
        return PRIORITY_DEFERRED

    async def call(
        self,
        prompt: str,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Evaluate the expression found in the prompt."""
        expression = self.extract_expression(prompt)

        if not expression:
            return {"error": "No mathematical expression found"}

        try:
            result = self.evaluate(expression)
        except ZeroDivisionError:
            return {
                "expression": expression,
                "error": "Division by zero",
                "formatted": f"Error calculating '{expression}': Division by zero",
            }
        except (ValueError, TypeError, OverflowError) as e:
            return {
                "expression": expression,
                "error": str(e),
                "formatted": f"Error calculating '{expression}': {e}",
            }

        return {
            "expression": expression,
            "result": result,
            "formatted": f"{expression} = {result}",
        }

    def extract_parameters(self, prompt: str) -> dict[str, Any]:
        return {"expression": self.extract_expression(prompt)}

    def extract_expression(self, prompt: str) -> str:
        """Find a mathematical expression in free text."""
        match = MATH_EXPR_PATTERN.search(prompt)
        if match:
            return match.group(1).strip().rstrip(".?!").strip()

        match = FUNC_CALL_PATTERN.search(prompt)
        if match:
            return match.group(0)

        match = QUOTED_EXPR_PATTERN.search(prompt)
        if match:
            return match.group(1) or match.group(2)

        return self._keyword_expression(prompt)

    def _keyword_expression(self, prompt: str) -> str:
        lowered = prompt.lower()
        for keyword in self.KEYWORDS:
            if keyword not in lowered:
                continue
            after = re.split(re.escape(keyword), prompt, maxsplit=1, flags=re.IGNORECASE)[1]
            candidate = re.split(r"[!?]|\.(?!\d)", after.strip())[0]
            cleaned = CLEAN_EXTRA_WORDS_PATTERN.sub("", candidate)
            cleaned = CLEAN_NON_MATH_PATTERN.sub(" ", cleaned)
            cleaned = " ".join(cleaned.split())
            if VALID_MATH_EXPRESSION_PATTERN.search(cleaned):
                return cleaned
        return ""

    def evaluate(self, expression: str) -> float | int:
        """Safely evaluate an expression, rounding floats to 10 places."""
        try:
            tree = ast.parse(expression.lower(), mode="eval")
        except SyntaxError as e:
            raise ValueError(f"Invalid expression syntax: {e}") from e

        result = self._evaluate_node(tree.body)
        if isinstance(result, float):
            if math.isnan(result):
                raise ValueError("Result is NaN")
            if result.is_integer() and not math.isinf(result):
                return int(result) if abs(result) < 1e15 else result
            return round(result, 10)
        return result

    def _evaluate_node(self, node: ast.AST) -> float | int:
        if isinstance(node, ast.Constant):
            if isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
                return node.value
            raise ValueError(f"Unsupported constant type: {type(node.value).__name__}")

        if isinstance(node, ast.Name):
            if node.id in self.CONSTANTS:
                return self.CONSTANTS[node.id]
            raise ValueError(f"Unknown constant: {node.id}")

        if isinstance(node, ast.UnaryOp):
            operand = self._evaluate_node(node.operand)
            op_type = type(node.op)
            if op_type in self.OPERATORS:
                return self.OPERATORS[op_type](operand)
            raise ValueError(f"Unsupported unary operator: {op_type.__name__}")

        if isinstance(node, ast.BinOp):
            left = self._evaluate_node(node.left)
            right = self._evaluate_node(node.right)
            op_type = type(node.op)
            if op_type in self.OPERATORS:
                return self.OPERATORS[op_type](left, right)
            raise ValueError(f"Unsupported binary operator: {op_type.__name__}")

        if isinstance(node, ast.Call):
            if isinstance(node.func, ast.Name) and node.func.id in self.FUNCTIONS:
                args = [self._evaluate_node(arg) for arg in node.args]
                return self.FUNCTIONS[node.func.id](*args)
            raise ValueError(f"Unknown function: {ast.unparse(node.func)}")

        raise ValueError(f"Unsupported expression type: {type(node).__name__}")
