import shortuuid


def generate_shortuuid() -> str:
    return shortuuid.uuid()


def generate_prefixed_id(prefix: str) -> str:
    return f"{prefix}_{shortuuid.uuid()}"
