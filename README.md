# cipherchat

A small chat room that runs over WebSockets. The server keeps accounts with
bcrypt-hashed passwords. Every client creates a 2048-bit RSA key pair when it
starts. Private messages are encrypted with the recipient's public key, so the
server only relays ciphertext that it cannot read.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Running

Start the server:

```
cipherchat-server [--host HOST] [--port PORT]
```

By default the server listens on all addresses, on port 8080. It accepts
WebSocket connections on any path.

In another terminal, start a client:

```
cipherchat-client [--url URL]
```

The client connects to `ws://localhost:8080/ws` unless you give `--url`.

The client first asks you to choose **1 - Register** or **2 - Login**. It then
asks for a nickname and a password. After you register, log in with the same
nickname and password. When the login succeeds, the server sends you the public
keys of all registered users. It also sends your new key to everyone who is
already in the room.

## Chatting

At the `>` prompt:

| Input                    | Effect                                                 |
|--------------------------|--------------------------------------------------------|
| any text                 | sent to everyone else in the room as `nick: text`      |
| `/msg <nick> <message>`  | encrypted for `<nick>` and delivered to that user only |
| `/quit`                  | leaves the chat                                        |

Blank lines are ignored. A private message can only be sent to a user whose
public key the client has received. The server delivers a private message as
`[личное от <nick>]: <base64 ciphertext>`. The receiving client decrypts it
with its private key and shows the plain text. If the recipient is not in the
room, the server replies `Пользователь <nick> не найден` to the sender.

## Library use

The building blocks can also be used directly:

- `cipherchat.keys`
  - `generate_key_pair(bits)` returns a `KeyPair` with `private_pem` (PKCS#1)
    and `public_pem` (SubjectPublicKeyInfo) as PEM strings.
  - `encrypt_with_public_key(message, public_pem)` and
    `decrypt_with_private_key(ciphertext, private_pem)` use RSA with PKCS#1
    v1.5 padding. Both raise `KeyError_`, a `ValueError` subclass, on a bad key
    or bad data.
  - `parse_public_keys(text)` turns `nick:key,nick:key` into a dict and skips
    entries that have no colon.
- `cipherchat.store.UserStore` is a thread-safe map from nicknames to public
  keys, with `set_user`, `get_public_key` (returns `None` for an unknown user)
  and `delete_user`.
- `cipherchat.client` provides the client protocol steps as plain functions:
  - `auth_command` builds the `REGISTER`/`LOGIN` command.
  - `login_finished` recognises the login reply.
  - `handle_incoming` stores received keys and decrypts private messages.
  - `prepare_outgoing` encrypts `/msg` lines.

  `run(url)` runs the interactive client against any server URL.
- `cipherchat.server.ChatRoom` holds the registered users and the connected
  `Participant`s. `authenticate(socket)` runs the login dialogue.
  `send_message(sender, message)` routes broadcast and private messages.
  `handle_connection(socket)` serves one connection from start to end. The
  bcrypt cost is set by `bcrypt_rounds` (default 10).
- `cipherchat.server.serve(host, port)` runs the server from your own asyncio
  code until it is cancelled.

## Limitations

- Accounts live in the server's memory only. They are lost when the server
  stops.
- Connections use plain `ws://`. The package does not set up TLS.
- Only private messages are encrypted. Room-wide messages are sent as plain
  text.