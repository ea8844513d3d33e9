from pagebot.application.dto.webhook_event import WebhookEventDTO, comment_event_id
from pagebot.domain.entities.inbound import CommentEvent, PostbackEvent, TextMessageEvent


def _dto(entry, obj="page"):
    return WebhookEventDTO.model_validate({"object": obj, "entry": [entry]})


def test_text_message_event():
    dto = _dto(
        {
            "id": "page_1",
            "messaging": [
                {"sender": {"id": "u1"}, "timestamp": 1700, "message": {"mid": "m.1", "text": "price?"}},
            ],
        }
    )
    assert dto.is_supported
    assert dto.extract_events() == [
        TextMessageEvent(event_id="m.1", page_id="page_1", sender_id="u1", text="price?", timestamp=1700)
    ]


def test_postback_and_quick_reply_become_postback_events():
    dto = _dto(
        {
            "id": "page_1",
            "messaging": [
                {"sender": {"id": "u1"}, "timestamp": 1, "postback": {"payload": "BOOKING_YES"}},
                {
                    "sender": {"id": "u1"},
                    "timestamp": 2,
                    "message": {"mid": "m.2", "text": "Yes", "quick_reply": {"payload": "BOOKING_NO"}},
                },
            ],
        }
    )
    events = dto.extract_events()
    assert all(isinstance(e, PostbackEvent) for e in events)
    assert events[0].event_id == "postback:u1:1:BOOKING_YES"
    assert events[1].payload == "BOOKING_NO"


def test_echo_and_attachment_only_messages_are_dropped():
    dto = _dto(
        {
            "id": "page_1",
            "messaging": [
                {"sender": {"id": "page_1"}, "message": {"mid": "m.3", "text": "hi", "is_echo": True}},
                {"sender": {"id": "u1"}, "message": {"mid": "m.4", "attachments": [{"type": "image"}]}},
                {"sender": {"id": "u1"}, "read": {"watermark": 1}},
            ],
        }
    )
    assert dto.extract_events() == []


def test_feed_comment_event():
    dto = _dto(
        {
            "id": "page_1",
            "changes": [
                {
                    "field": "feed",
                    "value": {
                        "item": "comment",
                        "verb": "add",
                        "comment_id": "c_1",
                        "post_id": "post_1",
                        "from": {"id": "u9", "name": "Ana"},
                        "message": "How much?",
                    },
                },
                {"field": "feed", "value": {"item": "comment", "verb": "remove", "comment_id": "c_2"}},
                {"field": "feed", "value": {"item": "reaction", "verb": "add"}},
            ],
        }
    )
    assert dto.extract_events() == [
        CommentEvent(event_id="c_1", page_id="page_1", sender_id="u9", text="How much?", sender_name="Ana", post_id="post_1")
    ]


def test_instagram_comment_event():
    dto = _dto(
        {
            "id": "ig_1",
            "changes": [
                {
                    "field": "comments",
                    "value": {"id": "ig_c1", "text": "book pls", "from": {"id": "u5", "username": "ana"}, "media": {"id": "med_1"}},
                }
            ],
        },
        obj="instagram",
    )
    [event] = dto.extract_events()
    assert event.sender_name == "ana"
    assert event.post_id == "med_1"


def test_comment_id_falls_back_to_composite():
    assert comment_event_id({"post_id": "p", "from": {"id": "u"}, "created_time": 5}) == "p:u:5"
    assert comment_event_id({"post_id": "p"}) is None


def test_unsupported_object():
    assert not WebhookEventDTO.model_validate({"object": "user", "entry": []}).is_supported
