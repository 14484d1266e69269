"""AI route optimization: prompt, model client, reply interpretation and assembly."""

from .prompt import build_route_prompt, DEFAULT_TIMEZONE_LABEL

from .gemini import (
    GeminiClient,
    build_request_body,
    extract_reply_text,
)

from .interpreter import (
    interpret_reply,
    InterpretedRoute,
    ReplyFields,
    clean_reasoning,
    decode_reply_fields,
    extract_json_object,
    extract_reasoning,
    extract_visit_order,
    reorder_by_indices,
    GENERIC_REASONING,
)

from .assembler import (
    RouteAssembler,
    OptimizationState,
    optimize_route,
    SINGLE_VISIT_REASONING,
)

__all__ = [
    # Prompt
    "build_route_prompt",
    "DEFAULT_TIMEZONE_LABEL",

    # Model client
    "GeminiClient",
    "build_request_body",
    "extract_reply_text",

    # Interpretation
    "interpret_reply",
    "InterpretedRoute",
    "ReplyFields",
    "clean_reasoning",
    "decode_reply_fields",
    "extract_json_object",
    "extract_reasoning",
    "extract_visit_order",
    "reorder_by_indices",
    "GENERIC_REASONING",

    # Assembly
    "RouteAssembler",
    "OptimizationState",
    "optimize_route",
    "SINGLE_VISIT_REASONING",
]
