from errors import GENERIC_ERROR, CardNotFound, ManaBaseError, TooLarge


def test_user_message_defaults_to_the_class_text():
    assert ManaBaseError("boom").user_message == GENERIC_ERROR
    assert TooLarge("5001 bytes").user_message == "File size exceeds the limit of 5kb."


def test_user_message_can_be_overridden_per_instance():
    error = CardNotFound("no card Blorp", user_message="No card named Blorp.")

    assert error.user_message == "No card named Blorp."
    assert CardNotFound.user_message == "Card not found."
    assert str(error) == "no card Blorp"
