import base64

import pytest

from cipherchat.client import (
    auth_command,
    handle_incoming,
    login_finished,
    prepare_outgoing,
)
from cipherchat.keys import KeyPair, generate_key_pair
from cipherchat.store import UserStore


@pytest.fixture(scope="module")
def key_pair() -> KeyPair:
    return generate_key_pair(2048)


def test_auth_command_register():
    password = "password"
    command = auth_command("1", "alice", password=password, public_key="PUBKEY")
    assert command.split(" ", 3) == ["REGISTER", "alice", password, "PUBKEY"]


def test_auth_command_login_keeps_pem_intact(key_pair):
    password = "password"
    command = auth_command("2", "bob", password=password, public_key=key_pair.public_pem)
    parts = command.split(" ", 3)
    assert parts[0] == "LOGIN"
    assert parts[3] == key_pair.public_pem


def test_auth_command_invalid_choice():
    password = "password"
    with pytest.raises(ValueError):
        auth_command("3", "alice", password=password, public_key="PUBKEY")


def test_login_finished():
    assert login_finished("Вход успешен") is True
    assert login_finished("Регистрация успешна") is False
    assert login_finished("Неверные ник или пароль") is False


def test_handle_incoming_public_keys():
    store = UserStore()
    line = handle_incoming("PUBLIC_KEYS alice:key1,bob:key2", store, "unused")
    assert line == "Обновлены публичные ключи пользователей"
    assert store.get_public_key("alice") == "key1"
    assert store.get_public_key("bob") == "key2"


def test_handle_incoming_plain_text_passes_through():
    store = UserStore()
    assert handle_incoming("alice: Всем привет!", store, "unused") == "alice: Всем привет!"
    assert store.get_public_key("alice") is None


def test_private_message_round_trip(key_pair):
    store = UserStore()
    store.set_user("bob", key_pair.public_pem)

    wire = prepare_outgoing("/msg bob Привет, Боб!", store)
    assert wire.startswith("/msg bob ")
    encoded = wire.split(" ", 2)[2]

    relayed = "[личное от alice]: " + encoded
    assert handle_incoming(relayed, UserStore(), key_pair.private_pem) == "[личное от alice]: Привет, Боб!"


def test_private_message_is_encrypted(key_pair):
    store = UserStore()
    store.set_user("bob", key_pair.public_pem)
    wire = prepare_outgoing("/msg bob hello", store)
    encoded = wire.split(" ", 2)[2]
    assert "hello" not in wire
    assert len(base64.b64decode(encoded)) == 256


def test_handle_incoming_bad_base64(key_pair):
    line = handle_incoming("[личное от alice]: !!!", UserStore(), key_pair.private_pem)
    assert line.startswith("Ошибка декодирования сообщения")


def test_handle_incoming_bad_ciphertext(key_pair):
    encoded = base64.b64encode(b"invalid-ciphertext").decode("ascii")
    line = handle_incoming("[личное от alice]: " + encoded, UserStore(), key_pair.private_pem)
    assert line.startswith("Ошибка дешифровки")


def test_handle_incoming_private_prefix_without_separator(key_pair):
    text = "[личное от alice"
    assert handle_incoming(text, UserStore(), key_pair.private_pem) == text


def test_prepare_outgoing_blank_line():
    assert prepare_outgoing("   \n", UserStore()) is None


def test_prepare_outgoing_plain_text_is_trimmed():
    assert prepare_outgoing("  Всем привет!\n", UserStore()) == "Всем привет!"


def test_prepare_outgoing_bad_private_format():
    with pytest.raises(ValueError, match="Неверный формат личного сообщения"):
        prepare_outgoing("/msg bob", UserStore())


def test_prepare_outgoing_unknown_recipient():
    with pytest.raises(ValueError, match="Публичный ключ пользователя не найден"):
        prepare_outgoing("/msg carol hello", UserStore())


def test_prepare_outgoing_invalid_recipient_key():
    store = UserStore()
    store.set_user("bob", "invalid-pem")
    with pytest.raises(ValueError, match="Ошибка шифрования"):
        prepare_outgoing("/msg bob hello", store)