from __future__ import annotations


def ts_document(body: str, language: str = "ru_RU") -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n<!DOCTYPE TS>\n'
        f'<TS version="2.1" language="{language}">\n{body}\n</TS>\n'
    )


def context_block(name: str, *messages: str) -> str:
    return f"<context>\n<name>{name}</name>\n{''.join(messages)}\n</context>"
