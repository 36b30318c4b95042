"""
Execution safeguards applied while validating a request: query depth limit
and suggestion-free error messages.
"""

import re

from graphql import (
    FieldNode,
    FragmentSpreadNode,
    GraphQLError,
    InlineFragmentNode,
    OperationDefinitionNode,
    SelectionSetNode,
    ValidationContext,
    ValidationRule,
)

_SUGGESTION_RE = re.compile(r"\s*Did you mean .*\?\s*$", re.DOTALL)


def selection_depth(
    context: ValidationContext,
    selection_set: SelectionSetNode | None,
    visited: frozenset[str] = frozenset(),
) -> int:
    """Depth of the deepest field below ``selection_set``.

    Fragments count as if inlined. Introspection fields (``__schema``,
    ``__type``, ``__typename``) are not counted.
    """
    if selection_set is None:
        return 0

    deepest = 0
    for selection in selection_set.selections:
        if isinstance(selection, FieldNode):
            if selection.name.value.startswith("__"):
                continue
            depth = 1 + selection_depth(context, selection.selection_set, visited)
        elif isinstance(selection, InlineFragmentNode):
            depth = selection_depth(context, selection.selection_set, visited)
        elif isinstance(selection, FragmentSpreadNode):
            name = selection.name.value
            fragment = context.get_fragment(name)
            # Cycles are reported by NoFragmentCyclesRule
            if fragment is None or name in visited:
                continue
            depth = selection_depth(context, fragment.selection_set, visited | {name})
        else:
            continue
        deepest = max(deepest, depth)
    return deepest


def depth_limit_rule(max_depth: int) -> type[ValidationRule]:
    """Build a validation rule rejecting operations nested deeper than ``max_depth``.

    Root fields are at depth 1, so ``{ cake { list(...) { name } } }`` has depth 3.
    """

    class QueryDepthRule(ValidationRule):
        def enter_operation_definition(self, node: OperationDefinitionNode, *_args):
            depth = selection_depth(self.context, node.selection_set)
            if depth > max_depth:
                name = node.name.value if node.name else "anonymous"
                self.report_error(
                    GraphQLError(
                        f"Operation '{name}' exceeds maximum depth of {max_depth}"
                        f" (depth {depth}).",
                        node,
                        extensions={"code": "QUERY_TOO_DEEP"},
                    )
                )

    return QueryDepthRule


def strip_suggestions(error: GraphQLError) -> GraphQLError:
    """Return ``error`` without its "Did you mean ...?" hint."""
    message = _SUGGESTION_RE.sub("", error.message)
    if message == error.message:
        return error
    return GraphQLError(
        message,
        error.nodes,
        error.source,
        error.positions,
        error.path,
        error.original_error,
        error.extensions,
    )
