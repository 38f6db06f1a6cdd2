from enum import Enum


class EnumBase(Enum):
    def __str__(self):
        return self.value


class TokenType(EnumBase):
    ACCESS = 'access'
    REFRESH = 'refresh'
