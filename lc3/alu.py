import operator


class ALU:
    OPS = {
        "ADD": operator.add,
        "AND": operator.and_,
        "NOT": lambda a, _: ~a,
    }

    @classmethod
    def execute(cls, op: str, a: int, b: int = 0) -> int:
        """Apply `op` and wrap the result to 16 bits (two's complement)."""
        try:
            return cls.OPS[op](a, b) & 0xFFFF
        except KeyError as e:
            raise ValueError(f"Unsupported ALU op {op}") from e
