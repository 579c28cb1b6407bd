import pytest
from conftest import auth_headers
from starlette.websockets import WebSocketDisconnect

from autocare.security import create_token_for_user


@pytest.fixture
def chat(client, customer, employee):
    response = client.post(
        "/chat/create",
        json={"customerId": customer.id, "employeeId": employee.id},
        headers=auth_headers(customer),
    )
    assert response.status_code == 200
    return response.json()


def send(client, user, chat_id, content, **extra):
    return client.post(
        "/chat/send",
        json={"chatId": chat_id, "content": content, **extra},
        headers=auth_headers(user),
    )


# ============================================================================
# CONVERSATIONS
# ============================================================================


def test_create_chat_is_idempotent(client, chat, customer, employee):
    again = client.post(
        "/chat/create",
        json={"customerId": customer.id, "employeeId": employee.id},
        headers=auth_headers(employee),
    )
    assert again.json()["id"] == chat["id"]
    assert chat["customerName"] == "Carol Customer"
    assert chat["employeeName"] == "Eddie Employee"


def test_cannot_open_chat_for_others(client, customer, other_customer, employee):
    response = client.post(
        "/chat/create",
        json={"customerId": customer.id, "employeeId": employee.id},
        headers=auth_headers(other_customer),
    )
    assert response.status_code == 403


def test_chat_needs_staff_member(client, customer, other_customer):
    response = client.post(
        "/chat/create",
        json={"customerId": customer.id, "employeeId": other_customer.id},
        headers=auth_headers(customer),
    )
    assert response.status_code == 400


def test_conversations_listed_for_both_sides(client, chat, customer, employee, other_customer):
    for user in (customer, employee):
        response = client.get("/chat/conversations", headers=auth_headers(user))
        assert [c["id"] for c in response.json()] == [chat["id"]]
    assert client.get("/chat/conversations", headers=auth_headers(other_customer)).json() == []


# ============================================================================
# MESSAGES
# ============================================================================


def test_send_and_list_messages(client, chat, customer, employee):
    assert send(client, customer, chat["id"], "Is my car ready?").status_code == 200
    assert send(client, employee, chat["id"], "Almost done").status_code == 200

    response = client.get(f"/chat/messages/{chat['id']}", headers=auth_headers(customer))
    assert [m["content"] for m in response.json()] == ["Is my car ready?", "Almost done"]

    conversations = client.get("/chat/conversations", headers=auth_headers(customer)).json()
    assert conversations[0]["lastMessageContent"] == "Almost done"


def test_non_participant_is_forbidden(client, chat, other_customer):
    assert send(client, other_customer, chat["id"], "hello").status_code == 403
    response = client.get(f"/chat/messages/{chat['id']}", headers=auth_headers(other_customer))
    assert response.status_code == 403


def test_blank_message_rejected(client, chat, customer):
    assert send(client, customer, chat["id"], "   ").status_code == 400


def test_message_can_be_edited_once(client, chat, customer):
    message = send(client, customer, chat["id"], "Pick up at 5").json()

    first = client.put(
        f"/chat/edit/{message['id']}", json={"content": "Pick up at 6"}, headers=auth_headers(customer)
    )
    assert first.status_code == 200
    assert first.json()["content"] == "Pick up at 6"
    assert first.json()["isEdited"] is True

    second = client.put(
        f"/chat/edit/{message['id']}", json={"content": "Pick up at 7"}, headers=auth_headers(customer)
    )
    assert second.status_code == 400


def test_only_sender_edits_or_deletes(client, chat, customer, employee):
    message = send(client, customer, chat["id"], "mine").json()
    headers = auth_headers(employee)
    assert client.put(f"/chat/edit/{message['id']}", json={"content": "x"}, headers=headers).status_code == 403
    assert client.delete(f"/chat/delete/{message['id']}", headers=headers).status_code == 403


def test_deleted_message_is_hidden(client, chat, customer):
    keep = send(client, customer, chat["id"], "keep").json()
    gone = send(client, customer, chat["id"], "oops").json()

    response = client.delete(f"/chat/delete/{gone['id']}", headers=auth_headers(customer))
    assert response.status_code == 200
    assert response.json()["isDeleted"] is True

    messages = client.get(f"/chat/messages/{chat['id']}", headers=auth_headers(customer)).json()
    assert [m["id"] for m in messages] == [keep["id"]]
    assert client.delete(f"/chat/delete/{gone['id']}", headers=auth_headers(customer)).status_code == 404


# ============================================================================
# CUSTOM QUESTIONS
# ============================================================================


def test_custom_questions(client, chat, admin, customer):
    created = client.post(
        "/chat/custom-questions",
        json={"question": "When will my car be ready?", "category": "SERVICE_STATUS"},
        headers=auth_headers(admin),
    )
    assert created.status_code == 201
    question_id = created.json()["id"]

    listed = client.get(
        "/chat/custom-questions", params={"category": "SERVICE_STATUS"}, headers=auth_headers(customer)
    )
    assert [q["id"] for q in listed.json()] == [question_id]

    message = send(
        client, customer, chat["id"], "When will my car be ready?", customQuestionId=question_id
    )
    assert message.json()["type"] == "CUSTOM_QUESTION"
    assert message.json()["customQuestionId"] == question_id


def test_customers_cannot_add_questions(client, customer):
    response = client.post(
        "/chat/custom-questions", json={"question": "Anything?"}, headers=auth_headers(customer)
    )
    assert response.status_code == 403


def test_unknown_question_id(client, chat, customer):
    assert send(client, customer, chat["id"], "?", customQuestionId=999).status_code == 404


# ============================================================================
# WEBSOCKET
# ============================================================================


def test_websocket_posts_and_receives_messages(client, chat, customer):
    token = create_token_for_user(customer)
    with client.websocket_connect(f"/ws/chat/{chat['id']}?token={token}") as ws:
        ws.send_json({"content": "hi"})
        frame = ws.receive_json()
        assert frame["event"] == "message.created"
        assert frame["data"]["content"] == "hi"
        assert frame["data"]["senderId"] == customer.id

        ws.send_json({"content": ""})
        error = ws.receive_json()
        assert error["event"] == "error"

    messages = client.get(f"/chat/messages/{chat['id']}", headers=auth_headers(customer)).json()
    assert [m["content"] for m in messages] == ["hi"]


def test_websocket_rejects_bad_token(client, chat):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/ws/chat/{chat['id']}?token=bogus") as ws:
            ws.receive_json()


def test_websocket_rejects_non_participant(client, chat, other_customer):
    token = create_token_for_user(other_customer)
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/ws/chat/{chat['id']}?token={token}") as ws:
            ws.receive_json()
