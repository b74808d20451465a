"""
string_validators.py
====================
Quoted string validation for payload fields and the signature name.
"""


def is_quoted_string(value: str) -> bool:
    """
    Check that the token starts and ends with a double quote.

    A token made of a single '"' passes as well: its first and last
    character are the same quote. Decoding it yields an empty payload.
    """
    if not isinstance(value, str) or not value:
        return False
    return value[0] == '"' and value[-1] == '"'


verify_string = is_quoted_string
