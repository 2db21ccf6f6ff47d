def csv_bytes(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


def numbered_rows(count: int):
    return [f"person{i},person{i}@example.com" for i in range(count)]
