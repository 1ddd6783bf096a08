from injecthive.types.envelope import ErrorCode, failure, from_client_reply, reply_error


class TestFromClientReply:
    def test_success_carries_result(self):
        envelope = from_client_reply({"success": True, "result": {"amount": "1"}}, "getBankBalanceError")

        assert envelope.success is True
        assert envelope.result == {"amount": "1"}

    def test_structured_error(self):
        reply = {"success": False, "error": {"code": "Unavailable", "message": "node down", "details": {"height": 5}}}

        envelope = from_client_reply(reply, "getBankBalanceError")

        assert envelope.code == "Unavailable"
        assert envelope.message == "node down"
        assert envelope.error.details == {"height": 5}

    def test_plain_string_error(self):
        envelope = from_client_reply({"success": False, "error": "node down"}, "getBankBalanceError")

        assert envelope.code == "getBankBalanceError"
        assert envelope.message == "node down"

    def test_missing_error(self):
        envelope = from_client_reply({"success": False}, "getTxsError")

        assert envelope.code == "getTxsError"
        assert envelope.message == "Unknown error"

    def test_empty_reply(self):
        envelope = from_client_reply(None, "getTxsError")

        assert envelope.code == "getTxsError"
        assert envelope.message == "Empty response from chain client"


def test_reply_error_shapes():
    assert reply_error({"error": {"message": "boom"}}) == {"message": "boom"}
    assert reply_error({"error": "boom"}) == {"message": "boom"}
    assert reply_error({"success": False}) == {}
    assert reply_error(None) == {}


def test_failure_accepts_enum_codes():
    assert failure(ErrorCode.MISSING_PARAMETER, "no denom").code == "MissingParameter"
