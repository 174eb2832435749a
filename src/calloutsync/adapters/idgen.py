import secrets
import string

from ..core.ports import IdGenerator

BASE36 = string.digits + string.ascii_lowercase


class Base36Id(IdGenerator):
    # 36**8 ids; fine for one personal vault, not for many concurrent writers
    def __init__(self, length: int = 8):
        self.length = length

    def new_id(self) -> str:
        return "".join(secrets.choice(BASE36) for _ in range(self.length))
