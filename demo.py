#!/usr/bin/env python3
"""
Demo script for the Pulau Pal Assistant API
Walks through a chat session against a running server
"""

import time

import requests

BASE_URL = "http://localhost:8000"
SESSIONS = f"{BASE_URL}/api/v1/chat/sessions"


def print_separator(title):
    """Print a separator with title"""
    print(f"\n{'='*60}")
    print(f"🌺 {title}")
    print(f"{'='*60}")


def print_last_message(snapshot):
    message = snapshot["messages"][-1]
    print(f"[{message['role']}] {message['content']}")
    for reply in message.get("suggestedReplies", []):
        print(f"   💬 {reply}")
    for button in message.get("actionButtons", []):
        print(f"   🔘 {button['label']} ({button['action']})")
    for notice in snapshot.get("notices", []):
        print(f"   ⚠️ {notice['title']}: {notice['description']}")


def wait_for_answer(session_id, timeout=60):
    """Poll the session until the typing reveal has finished"""
    deadline = time.time() + timeout
    snapshot = requests.get(f"{SESSIONS}/{session_id}").json()
    while snapshot["isGenerating"] and time.time() < deadline:
        time.sleep(0.5)
        snapshot = requests.get(f"{SESSIONS}/{session_id}").json()
    return snapshot


def demo_conversation():
    print_separator("Conversation Demo")
    snapshot = requests.post(SESSIONS, json={"language": "en"}).json()
    session_id = snapshot["sessionId"]
    print_last_message(snapshot)

    for question in ["How do I get to Untung Jawa?", "Show me a homestay"]:
        print(f"\n[user] {question}")
        requests.post(f"{SESSIONS}/{session_id}/messages", json={"text": question})
        print_last_message(wait_for_answer(session_id))

    return session_id


def demo_actions(session_id):
    print_separator("Action Button Demo")
    snapshot = requests.post(
        f"{SESSIONS}/{session_id}/actions",
        json={"label": "Book Sunrise Cottage", "action": "book", "data": {"id": 1}},
    ).json()
    print_last_message(snapshot)
    for command in snapshot["navigation"]:
        print(f"   ➡️ navigate to {command['target']}")


def demo_language_and_theme(session_id):
    print_separator("Language & Theme Demo")
    snapshot = requests.post(f"{SESSIONS}/{session_id}/language/toggle").json()
    print_last_message(snapshot)
    snapshot = requests.post(f"{SESSIONS}/{session_id}/theme/toggle").json()
    print(f"Theme is now: {snapshot['config']['theme']}")


def main():
    try:
        health = requests.get(f"{BASE_URL}/health", timeout=5).json()
        print(f"✅ Server is {health['status']}")
    except requests.exceptions.RequestException as e:
        print(f"❌ Server not reachable at {BASE_URL}: {e}")
        return

    session_id = demo_conversation()
    demo_actions(session_id)
    demo_language_and_theme(session_id)
    requests.delete(f"{SESSIONS}/{session_id}")
    print("\n🎉 Demo finished")


if __name__ == "__main__":
    main()
