"""Chat room server: registration, login, broadcast and private message relay."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

import bcrypt
import websockets
from websockets.exceptions import ConnectionClosed

log = logging.getLogger(__name__)

DEFAULT_PORT = 8080
DEFAULT_BCRYPT_ROUNDS = 10

_MSG_PREFIX = "/msg "
_KEYS_PREFIX = "PUBLIC_KEYS "
_BAD_PRIVATE_FORMAT = (
    "Неверный формат личного сообщения. Используйте /msg имя_пользователя сообщение"
)
_BAD_COMMAND = (
    "Неверная команда. Используйте REGISTER nick pass publicKey или LOGIN nick pass publicKey"
)
_ALREADY_REGISTERED = "Пользователь уже зарегистрирован"
_HASH_FAILED = "Ошибка при хешировании пароля"
_REGISTERED = "Регистрация успешна"
_BAD_CREDENTIALS = "Неверные ник или пароль"
_LOGIN_OK = "Вход успешен"
_UNKNOWN_COMMAND = "Неизвестная команда"


class Socket(Protocol):
    """The part of a WebSocket connection the chat room relies on."""

    async def send(self, message: str) -> None: ...

    async def recv(self) -> str | bytes: ...


@dataclass(eq=False)
class Participant:
    """A logged-in user bound to its connection; compared by identity."""

    socket: Socket
    nickname: str


@dataclass
class _User:
    password_hash: bytes
    public_key: str


def _as_text(message: str | bytes) -> str:
    return message.decode("utf-8", errors="replace") if isinstance(message, bytes) else message


async def _send(socket: Socket, text: str) -> None:
    """Send a message, ignoring a connection that has already gone away."""
    try:
        await socket.send(text)
    except (ConnectionClosed, OSError) as exc:
        log.debug("Ошибка отправки: %s", exc)


@dataclass
class ChatRoom:
    """Registered users and the participants currently in the chat."""

    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    members: set[Participant] = field(default_factory=set)
    _users: dict[str, _User] = field(default_factory=dict, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def send_message(self, sender: Participant, message: str) -> None:
        """Relay a private message to its recipient or broadcast to everyone else."""
        async with self._lock:
            participants = list(self.members)

        if message.startswith(_MSG_PREFIX):
            parts = message.split(" ", 2)
            if len(parts) < 3:
                await _send(sender.socket, _BAD_PRIVATE_FORMAT)
                return
            _, target_nick, private_msg = parts
            target = next((p for p in participants if p.nickname == target_nick), None)
            if target is None:
                await _send(sender.socket, f"Пользователь {target_nick} не найден")
            else:
                await _send(
                    target.socket, f"[личное от {sender.nickname}]: {private_msg}"
                )
            return

        for participant in participants:
            if participant is not sender:
                await _send(participant.socket, f"{sender.nickname}: {message}")

    async def _register(self, socket: Socket, nick: str, secret: str, public_key: str) -> None:
        if nick in self._users:
            await _send(socket, _ALREADY_REGISTERED)
            return
        try:
            hashed = await asyncio.to_thread(
                bcrypt.hashpw, secret.encode("utf-8"), bcrypt.gensalt(rounds=self.bcrypt_rounds)
            )
        except ValueError:
            await _send(socket, _HASH_FAILED)
            return
        self._users[nick] = _User(password_hash=hashed, public_key=public_key)
        await _send(socket, _REGISTERED)

    async def _login(
        self, socket: Socket, nick: str, secret: str, public_key: str
    ) -> Participant | None:
        user = self._users.get(nick)
        if user is None:
            await _send(socket, _BAD_CREDENTIALS)
            return None
        try:
            matches = await asyncio.to_thread(
                bcrypt.checkpw, secret.encode("utf-8"), user.password_hash
            )
        except ValueError:
            matches = False
        if not matches:
            await _send(socket, _BAD_CREDENTIALS)
            return None

        await _send(socket, _LOGIN_OK)
        participant = Participant(socket=socket, nickname=nick)
        user.public_key = public_key
        self.members.add(participant)

        all_keys = ",".join(f"{name}:{u.public_key}" for name, u in self._users.items())
        await _send(socket, _KEYS_PREFIX + all_keys)

        new_key_message = f"{_KEYS_PREFIX}{nick}:{public_key}"
        for other in list(self.members):
            if other is not participant:
                await _send(other.socket, new_key_message)
        return participant

    async def authenticate(self, socket: Socket) -> Participant | None:
        """Run the REGISTER/LOGIN dialogue; None if the connection closes first."""
        while True:
            try:
                raw = await socket.recv()
            except ConnectionClosed:
                return None
            parts = _as_text(raw).strip().split(" ", 3)
            if len(parts) < 4:
                await _send(socket, _BAD_COMMAND)
                continue
            command, nick, secret, public_key = parts
            command = command.upper()

            async with self._lock:
                if command == "REGISTER":
                    await self._register(socket, nick, secret, public_key)
                elif command == "LOGIN":
                    participant = await self._login(socket, nick, secret, public_key)
                    if participant is not None:
                        return participant
                else:
                    await _send(socket, _UNKNOWN_COMMAND)

    async def handle_connection(self, socket: Socket) -> None:
        """Serve one connection: authorise it, then relay its messages until it closes."""
        participant = await self.authenticate(socket)
        if participant is None:
            return
        log.info("Пользователь %s вошёл в чат", participant.nickname)
        try:
            while True:
                try:
                    incoming = await socket.recv()
                except ConnectionClosed as exc:
                    log.info("Ошибка при чтении: %s", exc)
                    break
                await self.send_message(participant, _as_text(incoming))
        finally:
            async with self._lock:
                self.members.discard(participant)
            log.info("Пользователь %s покинул чат", participant.nickname)


async def serve(host: str | None = None, port: int = DEFAULT_PORT) -> None:
    """Run the chat server until cancelled."""
    room = ChatRoom()
    async with websockets.serve(room.handle_connection, host, port):
        log.info("Сервер запущен на порту :%d", port)
        await asyncio.Future()


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point of the chat server."""
    parser = argparse.ArgumentParser(description="Encrypted chat server.")
    parser.add_argument("--host", default=None, help="address to listen on (all by default)")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    try:
        asyncio.run(serve(args.host, args.port))
    except KeyboardInterrupt:
        pass
    except OSError as exc:
        log.error("Не удалось запустить сервер: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())