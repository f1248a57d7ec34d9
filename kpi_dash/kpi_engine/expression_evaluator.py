# Path: kpi_dash/kpi_engine/expression_evaluator.py
"""
Expression Evaluator

Evaluates the restricted arithmetic left after formula references have
been substituted with numbers.

Grammar:
    numbers   unsigned decimals with '.' as separator
    operators + - * /  (left-associative; * and / bind tighter)
    grouping  ( )

'-' is always a binary operator, so a leading negative term such as
'-5+2' is rejected rather than read as unary minus.

Algorithm: tokenize -> shunting-yard to postfix -> stack evaluation.
Every failure comes back as an EvaluationFailure value; nothing raises.
"""

import math
import re
from typing import List, Union

from constants import OPERATOR_PRECEDENCE

from .kpi_models import EvaluationFailure


Token = Union[float, str]

_DIGITS = '0123456789'
_LOCALE_DECIMAL = re.compile(r'(?<=\d),(?=\d)')


def tokenize(expr: str) -> Union[List[Token], EvaluationFailure]:
    """
    Split an expression into numbers, operators and parentheses.

    Whitespace is ignored entirely, so '1 2' reads as '12'.

    Args:
        expr: Arithmetic text

    Returns:
        Token list, or EvaluationFailure on an unknown character or a
        malformed number such as '1.2.3'
    """
    tokens: List[Token] = []
    buffer = ''

    for char in re.sub(r'\s+', '', expr or ''):
        if char in _DIGITS or char == '.':
            buffer += char
            continue
        if char in OPERATOR_PRECEDENCE or char in '()':
            if buffer:
                number = _to_number(buffer)
                if isinstance(number, EvaluationFailure):
                    return number
                tokens.append(number)
                buffer = ''
            tokens.append(char)
            continue
        return EvaluationFailure(f"Unexpected character {char!r}")

    if buffer:
        number = _to_number(buffer)
        if isinstance(number, EvaluationFailure):
            return number
        tokens.append(number)

    return tokens


def _to_number(text: str) -> Union[float, EvaluationFailure]:
    try:
        return float(text)
    except ValueError:
        return EvaluationFailure(f"Malformed number {text!r}")


def to_postfix(tokens: List[Token]) -> Union[List[Token], EvaluationFailure]:
    """
    Reorder infix tokens into postfix with the shunting-yard algorithm.

    Args:
        tokens: Output of tokenize()

    Returns:
        Postfix token list, or EvaluationFailure on mismatched parentheses
    """
    output: List[Token] = []
    operators: List[str] = []

    for token in tokens:
        if isinstance(token, float):
            output.append(token)
        elif token == '(':
            operators.append(token)
        elif token == ')':
            while operators and operators[-1] != '(':
                output.append(operators.pop())
            if not operators:
                return EvaluationFailure("Unmatched ')'")
            operators.pop()
        else:
            precedence = OPERATOR_PRECEDENCE[token]
            while (
                operators
                and operators[-1] in OPERATOR_PRECEDENCE
                and OPERATOR_PRECEDENCE[operators[-1]] >= precedence
            ):
                output.append(operators.pop())
            operators.append(token)

    while operators:
        operator = operators.pop()
        if operator in '()':
            return EvaluationFailure("Unmatched '('")
        output.append(operator)

    return output


def evaluate_postfix(postfix: List[Token]) -> Union[float, EvaluationFailure]:
    """
    Evaluate a postfix token list on a numeric stack.

    Returns:
        The single remaining value, or EvaluationFailure on missing
        operands, division by zero, leftover operands or a non-finite result
    """
    stack: List[float] = []

    for token in postfix:
        if isinstance(token, float):
            stack.append(token)
            continue

        if len(stack) < 2:
            return EvaluationFailure(f"Operator {token!r} is missing an operand")
        right = stack.pop()
        left = stack.pop()

        if token == '+':
            result = left + right
        elif token == '-':
            result = left - right
        elif token == '*':
            result = left * right
        else:
            if right == 0:
                return EvaluationFailure("Division by zero")
            result = left / right

        if not math.isfinite(result):
            return EvaluationFailure("Non-finite intermediate result")
        stack.append(result)

    if len(stack) != 1:
        return EvaluationFailure(
            f"Expression left {len(stack)} values on the stack"
        )
    return stack[0]


def evaluate(expr: str) -> Union[float, EvaluationFailure]:
    """
    Evaluate a restricted arithmetic expression.

    Args:
        expr: Text made of numbers, + - * / and parentheses

    Returns:
        Numeric result or EvaluationFailure

    Example:
        evaluate('2+3*4')    # 14.0
        evaluate('(2+3)*4')  # 20.0
        evaluate('1/0')      # EvaluationFailure('Division by zero')
    """
    tokens = tokenize(expr)
    if isinstance(tokens, EvaluationFailure):
        return tokens

    postfix = to_postfix(tokens)
    if isinstance(postfix, EvaluationFailure):
        return postfix

    return evaluate_postfix(postfix)


def normalize_locale_expression(expr: str) -> str:
    """
    Turn comma decimal separators between digits into dots.

    '{{A}} * 0,5' typed on a tr-TR keyboard becomes '... * 0.5'.
    """
    return _LOCALE_DECIMAL.sub('.', expr or '')


__all__ = [
    'tokenize',
    'to_postfix',
    'evaluate_postfix',
    'evaluate',
    'normalize_locale_expression',
]
