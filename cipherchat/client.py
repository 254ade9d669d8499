"""Interactive chat client with end-to-end encrypted private messages."""

from __future__ import annotations

import _thread
import argparse
import base64
import binascii
import logging
import threading

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import ClientConnection, connect

from cipherchat.keys import (
    KeyError_,
    decrypt_with_private_key,
    encrypt_with_public_key,
    generate_key_pair,
    parse_public_keys,
)
from cipherchat.store import UserStore

log = logging.getLogger(__name__)

DEFAULT_URL = "ws://localhost:8080/ws"

_COMMANDS = {"1": "REGISTER", "2": "LOGIN"}
_KEYS_PREFIX = "PUBLIC_KEYS "
_PRIVATE_PREFIX = "[личное от "
_PRIVATE_SEPARATOR = "]: "
_MSG_PREFIX = "/msg "
_BAD_CHOICE = "Неверный выбор"


def auth_command(choice: str, nick: str, password: str, public_key: str) -> str:
    """Build a REGISTER or LOGIN command from a menu choice ("1" or "2")."""
    command = _COMMANDS.get(choice.strip())
    if command is None:
        raise ValueError(_BAD_CHOICE)
    return f"{command} {nick} {password} {public_key}"


def login_finished(reply: str) -> bool:
    """Tell whether a server reply ends the authorisation phase."""
    return reply.startswith("Вход успешен")


def handle_incoming(text: str, store: UserStore, private_pem: str) -> str:
    """Process a server message and return the line to show to the user."""
    if text.startswith(_KEYS_PREFIX):
        for nick, public_key in parse_public_keys(text[len(_KEYS_PREFIX):]).items():
            store.set_user(nick, public_key)
        return "Обновлены публичные ключи пользователей"

    if text.startswith(_PRIVATE_PREFIX):
        head, sep, encoded = text.partition(_PRIVATE_SEPARATOR)
        if sep:
            sender = head[len(_PRIVATE_PREFIX):]
            try:
                ciphertext = base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError) as exc:
                return f"Ошибка декодирования сообщения: {exc}"
            try:
                plaintext = decrypt_with_private_key(ciphertext, private_pem)
            except KeyError_ as exc:
                return f"Ошибка дешифровки: {exc}"
            return f"{_PRIVATE_PREFIX}{sender}{_PRIVATE_SEPARATOR}{plaintext}"

    return text


def prepare_outgoing(text: str, store: UserStore) -> str | None:
    """Turn a typed line into the message to send; None for a blank line.

    Private messages are encrypted with the recipient's public key; a
    ValueError explains why one cannot be sent.
    """
    text = text.strip()
    if not text:
        return None
    if not text.startswith(_MSG_PREFIX):
        return text

    parts = text.split(" ", 2)
    if len(parts) < 3:
        raise ValueError(
            "Неверный формат личного сообщения. Используйте /msg ник сообщение"
        )
    _, target, plain = parts

    public_key = store.get_public_key(target)
    if public_key is None:
        raise ValueError("Публичный ключ пользователя не найден")
    try:
        encrypted = encrypt_with_public_key(plain, public_key)
    except KeyError_ as exc:
        raise ValueError(f"Ошибка шифрования: {exc}") from exc
    return f"{_MSG_PREFIX}{target} {base64.b64encode(encrypted).decode('ascii')}"


def _authenticate(ws: ClientConnection, public_pem: str) -> bool:
    """Run the register/login dialogue; False if input ended before login."""
    while True:
        print("Выберите команду:\n1 - Register\n2 - Login")
        try:
            choice = input("Ваш выбор: ").strip()
            if choice not in _COMMANDS:
                print(_BAD_CHOICE)
                continue
            nick = input("Введите ник: ").strip()
            typed = input("Введите пароль: ").strip()
        except EOFError:
            return False

        ws.send(auth_command(choice, nick, typed, public_pem))
        reply = str(ws.recv())
        print(reply)
        if login_finished(reply):
            return True


def _receive_loop(
    ws: ClientConnection, store: UserStore, private_pem: str, closing: threading.Event
) -> None:
    while True:
        try:
            message = ws.recv()
        except (ConnectionClosed, OSError) as exc:
            log.info("Ошибка при чтении: %s", exc)
            if not closing.is_set():
                _thread.interrupt_main()
            return
        print(handle_incoming(str(message), store, private_pem))


def _send_loop(ws: ClientConnection, store: UserStore) -> None:
    while True:
        try:
            line = input("> ")
        except EOFError:
            return
        if line.strip() == "/quit":
            return
        try:
            outgoing = prepare_outgoing(line, store)
        except ValueError as exc:
            print(exc)
            continue
        if outgoing is None:
            continue
        try:
            ws.send(outgoing)
        except (ConnectionClosed, OSError) as exc:
            log.error("Ошибка отправки сообщения: %s", exc)
            return


def run(url: str = DEFAULT_URL) -> None:
    """Connect to the chat server at ``url`` and run the interactive session."""
    keys = generate_key_pair(2048)
    store = UserStore()
    with connect(url) as ws:
        if not _authenticate(ws, keys.public_pem):
            return
        closing = threading.Event()
        threading.Thread(
            target=_receive_loop,
            args=(ws, store, keys.private_pem, closing),
            daemon=True,
        ).start()
        try:
            _send_loop(ws, store)
        except KeyboardInterrupt:
            pass
        finally:
            closing.set()


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point of the chat client."""
    parser = argparse.ArgumentParser(description="Encrypted chat client.")
    parser.add_argument("--url", default=DEFAULT_URL, help="WebSocket URL of the chat server")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    try:
        run(args.url)
    except (OSError, WebSocketException) as exc:
        log.error("Не удалось подключиться к серверу: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())