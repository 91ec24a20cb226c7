def normalize_usage(obj):
    """
    Normalize LLM usage metadata into a plain dict.
    Safe across dicts, dataclasses, pydantic models, or None.
    """
    if obj is None:
        return None

    if isinstance(obj, dict):
        return obj

    if hasattr(obj, "model_dump"):
        return obj.model_dump()

    if hasattr(obj, "__dict__"):
        return vars(obj)

    return {"value": str(obj)}
