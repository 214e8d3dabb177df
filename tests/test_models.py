from __future__ import annotations

import pytest

from core.domain import cep78
from core.domain.errors import InvalidReferenceError
from core.domain.hashing import account_hash_from_public_key
from core.domain.models import (
    ArgKind,
    CallArg,
    CasperKey,
    ContractInfo,
    ContractRef,
    KeyKind,
    TokenIdentifier,
    encode_metadata,
)

from conftest import CONTRACT_HASH, OWNER_ACCOUNT_HASH, OWNER_PUBLIC_KEY


@pytest.mark.parametrize(
    "raw",
    [CONTRACT_HASH, f"hash-{CONTRACT_HASH}", f"  {CONTRACT_HASH.upper()} "],
)
def test_contract_ref_accepts_prefixed_and_bare_hashes(raw: str) -> None:
    ref = ContractRef.parse(raw)
    assert ref.hash_hex == CONTRACT_HASH
    assert ref.key == f"hash-{CONTRACT_HASH}"
    assert str(ref) == CONTRACT_HASH


@pytest.mark.parametrize("raw", ["", "hash-1234", "zz" * 32, CONTRACT_HASH + "00"])
def test_contract_ref_rejects_bad_hashes(raw: str) -> None:
    with pytest.raises(InvalidReferenceError):
        ContractRef.parse(raw)


def test_public_key_resolves_to_account_hash() -> None:
    key = CasperKey.parse(OWNER_PUBLIC_KEY)
    assert key.kind is KeyKind.ACCOUNT
    assert key.public_key_hex == OWNER_PUBLIC_KEY
    assert key.identifier_hex == account_hash_from_public_key(OWNER_PUBLIC_KEY)
    assert key.dictionary_item_key == key.identifier_hex


def test_bare_hex_is_an_account_hash() -> None:
    key = CasperKey.parse(OWNER_ACCOUNT_HASH)
    assert key.kind is KeyKind.ACCOUNT
    assert key.formatted == f"account-hash-{OWNER_ACCOUNT_HASH}"
    assert key.to_bytes() == b"\x00" + bytes.fromhex(OWNER_ACCOUNT_HASH)


def test_hash_prefix_is_a_contract_key() -> None:
    key = CasperKey.parse(f"hash-{CONTRACT_HASH}")
    assert key.kind is KeyKind.HASH
    assert key.to_bytes()[0] == 1
    assert str(key) == f"hash-{CONTRACT_HASH}"


def test_contract_key_strips_package_prefix() -> None:
    key = CasperKey.contract(f"contract-package-wasm{CONTRACT_HASH}")
    assert key.identifier_hex == CONTRACT_HASH


@pytest.mark.parametrize("prefix", ["contract-package-", "contract-", "hash-", ""])
def test_contract_key_prefixes(prefix: str) -> None:
    assert CasperKey.contract(f"{prefix}{CONTRACT_HASH}").identifier_hex == CONTRACT_HASH


@pytest.mark.parametrize(
    "parsed, kind",
    [
        (f"account-hash-{OWNER_ACCOUNT_HASH}", KeyKind.ACCOUNT),
        ({"Account": f"account-hash-{OWNER_ACCOUNT_HASH}"}, KeyKind.ACCOUNT),
        ({"Hash": f"hash-{OWNER_ACCOUNT_HASH}"}, KeyKind.HASH),
    ],
)
def test_key_from_node_parsed_value(parsed, kind: KeyKind) -> None:
    key = CasperKey.from_parsed(parsed)
    assert key.kind is kind
    assert key.identifier_hex == OWNER_ACCOUNT_HASH


@pytest.mark.parametrize("raw", ["01abcd", "03" + "ab" * 32, "not-a-key", {"URef": "uref-00"}, 42])
def test_bad_keys_are_rejected(raw) -> None:
    with pytest.raises(InvalidReferenceError):
        if isinstance(raw, str):
            CasperKey.parse(raw)
        else:
            CasperKey.from_parsed(raw)


def test_ordinal_token_identifier() -> None:
    token = TokenIdentifier.parse("31")
    assert token.mode is cep78.NFTIdentifierMode.ORDINAL
    assert token.dictionary_item_key == "31"
    arg = token.as_call_arg()
    assert (arg.name, arg.kind, arg.value) == ("token_id", ArgKind.U64, 31)


def test_hash_token_identifier() -> None:
    token = TokenIdentifier.parse("  deadbeef ")
    assert token.mode is cep78.NFTIdentifierMode.HASH
    assert token.dictionary_item_key == "deadbeef"
    assert token.as_call_arg().name == "token_hash"


@pytest.mark.parametrize("raw", [-1, 2**64, "   "])
def test_invalid_token_identifiers(raw) -> None:
    with pytest.raises(InvalidReferenceError):
        TokenIdentifier.parse(raw)


@pytest.mark.parametrize("raw", ["²", "١٢"])
def test_non_ascii_digits_are_token_hashes(raw: str) -> None:
    token = TokenIdentifier.parse(raw)
    assert token.mode is cep78.NFTIdentifierMode.HASH
    assert token.token_hash == raw


def test_call_arg_enforces_u64_range() -> None:
    with pytest.raises(ValueError):
        CallArg(name="token_id", kind=ArgKind.U64, value=2**64)
    with pytest.raises(ValueError):
        CallArg(name="token_id", kind=ArgKind.U64, value=True)


def test_encode_metadata_is_compact_json() -> None:
    assert encode_metadata({"name": "Box #1", "token_uri": "ipfs://x"}) == '{"name":"Box #1","token_uri":"ipfs://x"}'
    assert encode_metadata("raw") == "raw"


def test_contract_info_lookup() -> None:
    info = ContractInfo.model_validate(
        {"namedKeys": [{"name": "dotoracle_nft_bridge_contract", "key": f"hash-{CONTRACT_HASH}"}]}
    )
    assert info.contract_hash("dotoracle_nft_bridge_contract").hash_hex == CONTRACT_HASH
    with pytest.raises(InvalidReferenceError):
        info.contract_hash("missing")
