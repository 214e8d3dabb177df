from __future__ import annotations

from pycspr.types.cl import CLV_Key, CLV_KeyType, CLV_U64

from adapters.deploy_signer import PycsprDeploySigner, to_cl_value
from core.domain.models import ArgKind, CallArg, CasperKey, ContractCall, ContractRef
from core.interfaces.signer import DeploySigner

from conftest import CONTRACT_HASH, OWNER_ACCOUNT_HASH, PACKAGE_HASH

SECRET = bytes(range(1, 33))


def test_signer_builds_a_signed_stored_contract_call() -> None:
    signer = PycsprDeploySigner(SECRET, chain_name="casper-test")
    assert isinstance(signer, DeploySigner)
    assert signer.public_key_hex.startswith("01")
    assert len(signer.public_key_hex) == 66

    call = ContractCall(
        entry_point="set_minter",
        args=[CallArg(name="minter", kind=ArgKind.KEY, value=CasperKey.contract(PACKAGE_HASH))],
    )
    signed = signer.sign_call(contract=ContractRef.parse(CONTRACT_HASH), call=call, payment_amount=5_000_000_000)

    assert len(signed.deploy_hash) == 64
    assert signed.payload["hash"] == signed.deploy_hash
    assert signed.payload["header"]["chain_name"] == "casper-test"
    assert len(signed.payload["approvals"]) == 1


def test_each_call_is_a_new_deploy() -> None:
    signer = PycsprDeploySigner(SECRET, chain_name="casper-test")
    call = ContractCall(entry_point="burn", args=[CallArg(name="token_id", kind=ArgKind.U64, value=1)])
    contract = ContractRef.parse(CONTRACT_HASH)
    first = signer.sign_call(contract=contract, call=call, payment_amount=5_000_000_000)
    second = signer.sign_call(contract=contract, call=call, payment_amount=6_000_000_000)
    assert first.deploy_hash != second.deploy_hash


def test_key_arguments_keep_their_kind() -> None:
    account = to_cl_value(CallArg(name="token_owner", kind=ArgKind.KEY, value=CasperKey.account(OWNER_ACCOUNT_HASH)))
    contract = to_cl_value(CallArg(name="minter", kind=ArgKind.KEY, value=CasperKey.contract(PACKAGE_HASH)))

    assert isinstance(account, CLV_Key)
    assert account.key_type is CLV_KeyType.ACCOUNT
    assert account.identifier == bytes.fromhex(OWNER_ACCOUNT_HASH)
    assert contract.key_type is CLV_KeyType.HASH
    assert contract.identifier == bytes.fromhex(PACKAGE_HASH)


def test_u64_argument() -> None:
    value = to_cl_value(CallArg(name="token_id", kind=ArgKind.U64, value=7))
    assert isinstance(value, CLV_U64)
    assert value.value == 7
