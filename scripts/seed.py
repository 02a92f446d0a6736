"""Seed script: creates demo users, documents, saves and shares via the REST API.

Usage:
    python scripts/seed.py              # uses http://localhost:8000
    python scripts/seed.py http://host  # custom base URL
"""

import sys

import httpx

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"
PASSWORD = "password123"

USERS = [
    {"username": "alice", "email": "alice@example.com", "full_name": "Alice Smith"},
    {"username": "bob", "email": "bob@example.com", "full_name": "Bob Jones"},
    {"username": "carol", "email": "carol@example.com", "full_name": "Carol White"},
]

# title, owner, paragraphs, [(share target, permission)]
DOCUMENTS = [
    (
        "Getting Started Guide",
        "alice",
        ["Welcome to the workspace.", "Documents save automatically while you type."],
        [("bob", "write"), ("carol", "read")],
    ),
    (
        "Architecture Notes",
        "bob",
        ["Every save appends a numbered version.", "Restoring never rewrites history."],
        [("alice", "read")],
    ),
]


def paragraphs(*texts: str) -> dict:
    return {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": text}]}
            for text in texts
        ],
    }


def register(client: httpx.Client, user: dict) -> None:
    resp = client.post(f"{BASE_URL}/api/auth/register", json={**user, "password": PASSWORD})
    if resp.status_code == 201:
        print(f"  Registered {user['username']}")
    elif resp.status_code == 409:
        print(f"  {user['username']} already exists, skipping")
    else:
        resp.raise_for_status()


def login(client: httpx.Client, email: str) -> dict:
    resp = client.post(
        f"{BASE_URL}/api/auth/login",
        json={"email": email, "password": PASSWORD},
    )
    resp.raise_for_status()
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def create_document(client: httpx.Client, headers: dict, title: str, body: list[str]) -> str:
    resp = client.post(f"{BASE_URL}/api/documents/", headers=headers)
    resp.raise_for_status()
    doc_id = resp.json()["id"]

    resp = client.put(
        f"{BASE_URL}/api/documents/{doc_id}/content",
        json={"title": title, "content": paragraphs(*body)},
        headers=headers,
    )
    resp.raise_for_status()
    print(f"  Created '{title}' ({doc_id}), version {resp.json()['version_number']}")
    return doc_id


def share(client: httpx.Client, headers: dict, doc_id: str, target: str, permission: str) -> None:
    resp = client.post(
        f"{BASE_URL}/api/documents/{doc_id}/shares",
        json={"identifier": target, "permission": permission},
        headers=headers,
    )
    if resp.status_code == 409:
        print(f"    already shared with {target}")
        return
    resp.raise_for_status()
    print(f"    shared with {target} ({permission})")


def main() -> None:
    print(f"Seeding against {BASE_URL}\n")

    with httpx.Client(timeout=10) as client:
        print("Users:")
        for user in USERS:
            register(client, user)

        headers = {user["username"]: login(client, user["email"]) for user in USERS}

        print("\nDocuments:")
        for title, owner, body, shares in DOCUMENTS:
            doc_id = create_document(client, headers[owner], title, body)
            for target, permission in shares:
                share(client, headers[owner], doc_id, target, permission)

    print("\nDone! Log in as any user with password 'password123'.")


if __name__ == "__main__":
    main()
