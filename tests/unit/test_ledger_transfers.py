"""
Unit tests for approvals and transfers on MultiTokenLedger.
"""

import pytest

from ledger import (
    NULL_ACCOUNT, RECEIVED_MARKER, InsufficientBalance, InvalidAccount, InvalidAmount,
    InvalidArgument, InvalidRecipient, LengthMismatch, ReceiverRejected, SelfApproval,
    Unauthorized
)
from tests.conftest import ADMIN, ALICE, BOB, CAROL


class TestApprovals:
    """Test operator approvals."""
    
    def test_grant_and_revoke(self, ledger, recorder):
        ledger.set_approval_for_all(ALICE, BOB, True)
        assert ledger.is_approved_for_all(ALICE, BOB)
        assert not ledger.is_approved_for_all(BOB, ALICE)
        
        ledger.set_approval_for_all(ALICE, BOB, False)
        assert not ledger.is_approved_for_all(ALICE, BOB)
        
        assert [e.args() for e in recorder.events] == [
            (ALICE, BOB, True),
            (ALICE, BOB, False),
        ]
    
    def test_self_approval_rejected(self, ledger, recorder):
        with pytest.raises(SelfApproval, match="setting approval status for self"):
            ledger.set_approval_for_all(ALICE, ALICE, True)
        
        assert recorder.events == []
    
    def test_null_caller_rejected(self, ledger):
        with pytest.raises(Unauthorized):
            ledger.set_approval_for_all(NULL_ACCOUNT, BOB, True)


class TestSafeTransferFrom:
    """Test single transfers."""
    
    def test_owner_transfer(self, funded_ledger):
        funded_ledger.safe_transfer_from(ALICE, ALICE, BOB, 1, 2)
        
        assert funded_ledger.balance_of(ALICE, 1) == 3
        assert funded_ledger.balance_of(BOB, 1) == 2
        assert funded_ledger.total_supply(1) == 5
    
    def test_locked_token_emits_public_event(self, funded_ledger):
        funded_ledger.safe_transfer_from(ALICE, ALICE, BOB, 1, 2)
        
        event = funded_ledger.events[-1]
        assert event.name == "TransferSinglePublic"
        assert event.args() == (ALICE, ALICE, BOB, 1, 2, "pub-1")
    
    def test_unlocked_token_emits_private_event(self, funded_ledger):
        funded_ledger.unlock(ADMIN, 1, [CAROL])
        funded_ledger.safe_transfer_from(ALICE, ALICE, BOB, 1, 2)
        
        event = funded_ledger.events[-1]
        assert event.name == "TransferSinglePrivate"
        assert event.args() == (ALICE, ALICE, BOB, 1, 2, (CAROL,), "pub-1", "priv-1")
    
    def test_approved_operator_transfer(self, funded_ledger):
        funded_ledger.set_approval_for_all(ALICE, CAROL, True)
        funded_ledger.safe_transfer_from(CAROL, ALICE, BOB, 2, 3)
        
        assert funded_ledger.balance_of(BOB, 2) == 3
        assert funded_ledger.events[-1].operator == CAROL
    
    def test_unapproved_operator_rejected(self, funded_ledger):
        with pytest.raises(Unauthorized, match="caller is not token owner or approved"):
            funded_ledger.safe_transfer_from(CAROL, ALICE, BOB, 1, 1)
        
        assert funded_ledger.balance_of(ALICE, 1) == 5
    
    def test_revoked_operator_rejected(self, funded_ledger):
        funded_ledger.set_approval_for_all(ALICE, CAROL, True)
        funded_ledger.set_approval_for_all(ALICE, CAROL, False)
        
        with pytest.raises(Unauthorized):
            funded_ledger.safe_transfer_from(CAROL, ALICE, BOB, 1, 1)
    
    def test_transfer_to_null_rejected(self, funded_ledger):
        with pytest.raises(InvalidRecipient):
            funded_ledger.safe_transfer_from(ALICE, ALICE, NULL_ACCOUNT, 1, 1)
        
        # InvalidRecipient is an InvalidAccount
        with pytest.raises(InvalidAccount):
            funded_ledger.safe_transfer_from(ALICE, ALICE, None, 1, 1)
        
        assert funded_ledger.balance_of(ALICE, 1) == 5
    
    def test_insufficient_balance(self, funded_ledger):
        events_before = len(funded_ledger.events)
        
        with pytest.raises(InsufficientBalance) as exc_info:
            funded_ledger.safe_transfer_from(ALICE, ALICE, BOB, 1, 6)
        
        assert exc_info.value.required == 6
        assert exc_info.value.available == 5
        assert funded_ledger.balance_of(ALICE, 1) == 5
        assert funded_ledger.balance_of(BOB, 1) == 0
        assert len(funded_ledger.events) == events_before
    
    def test_zero_amount_transfer_emits_event(self, funded_ledger):
        funded_ledger.safe_transfer_from(ALICE, ALICE, BOB, 1, 0)
        
        assert funded_ledger.balance_of(BOB, 1) == 0
        assert funded_ledger.events[-1].amount == 0
    
    def test_self_transfer_keeps_balance(self, funded_ledger):
        funded_ledger.safe_transfer_from(ALICE, ALICE, ALICE, 1, 5)
        
        assert funded_ledger.balance_of(ALICE, 1) == 5
    
    def test_negative_amount_rejected(self, funded_ledger):
        with pytest.raises(InvalidAmount):
            funded_ledger.safe_transfer_from(ALICE, ALICE, BOB, 1, -1)
    
    def test_received_callback_gets_arguments(self, funded_ledger, holder):
        funded_ledger.register_receiver("0xVault", holder)
        funded_ledger.safe_transfer_from(ALICE, ALICE, "0xVault", 1, 2, b"\x01\x02")
        
        assert holder.received == [(ALICE, ALICE, 1, 2, b"\x01\x02")]
        assert funded_ledger.balance_of("0xvault", 1) == 2


class TestSafeBatchTransferFrom:
    """Test batch transfers."""
    
    def test_batch_moves_each_pair(self, funded_ledger, recorder):
        funded_ledger.safe_batch_transfer_from(ALICE, ALICE, BOB, [1, 2], [5, 3])
        
        assert funded_ledger.balance_of_batch([ALICE, ALICE, BOB, BOB], [1, 2, 1, 2]) == [0, 0, 5, 3]
        assert recorder.names() == ["TransferSinglePublic", "TransferSinglePublic"]
        assert [(e.token_id, e.amount) for e in recorder.events] == [(1, 5), (2, 3)]
    
    def test_batch_events_follow_lock_state_per_id(self, funded_ledger, recorder):
        funded_ledger.unlock(ADMIN, 2, [CAROL])
        funded_ledger.safe_batch_transfer_from(ALICE, ALICE, BOB, [1, 2], [1, 1])
        
        assert recorder.names()[-2:] == ["TransferSinglePublic", "TransferSinglePrivate"]
    
    def test_repeated_id_sees_updated_balance(self, funded_ledger):
        funded_ledger.safe_batch_transfer_from(ALICE, ALICE, BOB, [1, 1], [3, 2])
        assert funded_ledger.balance_of(BOB, 1) == 5
        
        with pytest.raises(InsufficientBalance):
            funded_ledger.safe_batch_transfer_from(BOB, BOB, ALICE, [1, 1], [3, 3])
        
        assert funded_ledger.balance_of(BOB, 1) == 5
        assert funded_ledger.balance_of(ALICE, 1) == 0
    
    def test_failure_mid_batch_rolls_back_earlier_pairs(self, funded_ledger, recorder):
        with pytest.raises(InsufficientBalance):
            funded_ledger.safe_batch_transfer_from(ALICE, ALICE, BOB, [1, 2], [5, 4])
        
        assert funded_ledger.balance_of(ALICE, 1) == 5
        assert funded_ledger.balance_of(BOB, 1) == 0
        assert recorder.events == []
    
    def test_length_mismatch(self, funded_ledger):
        with pytest.raises(LengthMismatch, match="ids and amounts length mismatch"):
            funded_ledger.safe_batch_transfer_from(ALICE, ALICE, BOB, [1, 2], [1])
    
    def test_empty_batch(self, funded_ledger, holder):
        funded_ledger.register_receiver(CAROL, holder)
        funded_ledger.safe_batch_transfer_from(ALICE, ALICE, CAROL, [], [])
        
        assert holder.received == [(ALICE, ALICE, [], [], b"")]
    
    def test_batch_callback_called_once(self, funded_ledger, holder):
        funded_ledger.register_receiver(CAROL, holder)
        funded_ledger.safe_batch_transfer_from(ALICE, ALICE, CAROL, [1, 7], [1, 10], b"memo")
        
        assert holder.received == [(ALICE, ALICE, [1, 7], [1, 10], b"memo")]
    
    def test_unapproved_batch_rejected(self, funded_ledger):
        with pytest.raises(Unauthorized):
            funded_ledger.safe_batch_transfer_from(BOB, ALICE, BOB, [1], [1])


class WrongMarkerReceiver:
    """Receiver that answers with a value other than the acceptance marker."""
    
    def __init__(self):
        self.calls = 0
    
    def on_received(self, operator, from_, token_id, amount, data):
        self.calls += 1
        return b"\x00\x00\x00\x00"
    
    def on_batch_received(self, operator, from_, token_ids, amounts, data):
        self.calls += 1
        return RECEIVED_MARKER


class TestRecipientConsent:
    """A programmable recipient that does not accept leaves everything unchanged."""
    
    def test_wrong_marker_rejects_single_transfer(self, funded_ledger, recorder):
        receiver = WrongMarkerReceiver()
        funded_ledger.register_receiver(BOB, receiver)
        events_before = len(funded_ledger.events)
        
        with pytest.raises(ReceiverRejected) as exc_info:
            funded_ledger.safe_transfer_from(ALICE, ALICE, BOB, 1, 2)
        
        assert exc_info.value.reason is None
        assert receiver.calls == 1
        assert funded_ledger.balance_of_batch([ALICE, BOB], [1, 1]) == [5, 0]
        assert len(funded_ledger.events) == events_before
        assert recorder.events == []
    
    def test_wrong_marker_rejects_batch_transfer(self, funded_ledger, recorder):
        """The single-transfer marker is not accepted for a batch."""
        funded_ledger.register_receiver(BOB, WrongMarkerReceiver())
        events_before = len(funded_ledger.events)
        
        with pytest.raises(ReceiverRejected):
            funded_ledger.safe_batch_transfer_from(ALICE, ALICE, BOB, [1, 2], [5, 3])
        
        assert funded_ledger.balance_of_batch(
            [ALICE, ALICE, BOB, BOB], [1, 2, 1, 2]
        ) == [5, 3, 0, 0]
        assert len(funded_ledger.events) == events_before
        assert recorder.events == []


class TestArgumentShapes:
    """Malformed arguments fail as ledger errors before any state changes."""
    
    @pytest.mark.parametrize("data", ["memo", 3, [1, 2]])
    def test_data_must_be_bytes(self, funded_ledger, data):
        with pytest.raises(InvalidArgument, match="data must be bytes"):
            funded_ledger.safe_transfer_from(ALICE, ALICE, BOB, 1, 1, data)
        
        assert funded_ledger.balance_of(BOB, 1) == 0
    
    def test_bytearray_data_accepted(self, funded_ledger, holder):
        funded_ledger.register_receiver(BOB, holder)
        funded_ledger.safe_transfer_from(ALICE, ALICE, BOB, 1, 1, bytearray(b"\x07"))
        
        assert holder.received[0][-1] == b"\x07"
    
    def test_string_token_ids_rejected(self, funded_ledger):
        with pytest.raises(InvalidArgument):
            funded_ledger.safe_batch_transfer_from(ALICE, ALICE, BOB, "12", [1, 1])
    
    def test_scalar_amounts_rejected(self, funded_ledger):
        with pytest.raises(InvalidArgument):
            funded_ledger.safe_batch_transfer_from(ALICE, ALICE, BOB, [1], 1)
