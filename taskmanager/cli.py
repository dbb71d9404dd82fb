"""
Terminal client for the Task Manager API.

A thin synchronous wrapper around httpx plus an argparse front end. The
client keeps a small JSON config file (server URL, API key, username) so
that after `tasks-cli login` every later command is authenticated with

    Authorization: APIKEY <api_key>

Usage:
    tasks-cli config --server-url http://localhost:8000/v1
    tasks-cli register alice --age 30
    tasks-cli login alice
    tasks-cli whoami
    tasks-cli tasks add "Buy milk" --description "Two litres."
    tasks-cli tasks list
    tasks-cli tasks search milk --limit 5
    tasks-cli tasks done <task-id>
    tasks-cli tasks rm <task-id>
    tasks-cli logout

The config file defaults to ./cli-config.json; set TASKS_CLI_CONFIG to
keep it somewhere else. Passwords are prompted for unless --password is
given, and are never written to the config file.
"""

import argparse
import getpass
import json
import os
import sys
from pathlib import Path

import httpx

DEFAULT_SERVER_URL = "http://localhost:8000/v1"
DEFAULT_CONFIG_FILE = "cli-config.json"
CONFIG_ENV_VAR = "TASKS_CLI_CONFIG"


class APIError(Exception):
    """A non-2xx response, carrying the server's {"error": ...} message."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"{status}: {message}")


class APIClient:
    def __init__(
        self,
        base_url: str = DEFAULT_SERVER_URL,
        api_key: str | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self._client = httpx.Client(base_url=base_url, transport=transport, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, path: str, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.api_key:
            headers["Authorization"] = f"APIKEY {self.api_key}"

        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise APIError(0, f"cannot reach server: {exc}") from exc

        if response.is_error:
            try:
                message = response.json().get("error", response.text)
            except ValueError:
                message = response.text or response.reason_phrase
            raise APIError(response.status_code, message)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # --- Account ---

    def register(self, username: str, password: str, age: int | None = None,
                 gender: str | None = None) -> dict:
        payload = {"username": username, "password": password}
        if age is not None:
            payload["age"] = age
        if gender is not None:
            payload["gender"] = gender
        return self._request("POST", "/users", json=payload)

    def login(self, username: str, password: str) -> dict:
        return self._request("POST", "/login", json={"username": username, "password": password})

    def me(self) -> dict:
        return self._request("GET", "/users/me")

    # --- Tasks ---

    def list_tasks(self) -> list[dict]:
        return self._request("GET", "/tasks")

    def search_tasks(self, query: str, limit: int | None = None) -> list[dict]:
        params = {"query": query}
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", "/tasks/search", params=params)

    def get_task(self, task_id: str) -> dict:
        return self._request("GET", f"/tasks/{task_id}")

    def create_task(self, title: str, description: str = "") -> dict:
        return self._request("POST", "/tasks", json={"title": title, "description": description})

    def update_task(self, task_id: str, title: str, description: str) -> dict:
        return self._request(
            "PUT", f"/tasks/{task_id}", json={"title": title, "description": description}
        )

    def set_completion(self, task_id: str, is_completed: bool) -> dict:
        return self._request(
            "PATCH", f"/tasks/{task_id}/completion", json={"is_completed": is_completed}
        )

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")


# ---------------------------------------------------------------------------
# Config file
# ---------------------------------------------------------------------------

def config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))


def load_config(path: Path | None = None) -> dict:
    path = path or config_path()
    config = {"server_url": DEFAULT_SERVER_URL, "api_key": None, "username": None}
    if path.exists():
        config.update(json.loads(path.read_text(encoding="utf-8")))
    return config


def save_config(config: dict, path: Path | None = None) -> None:
    path = path or config_path()
    path.write_text(json.dumps(config, indent=2) + "\n", encoding="utf-8")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _password(args: argparse.Namespace) -> str:
    return args.password if args.password is not None else getpass.getpass("Password: ")


def _format_task(task: dict) -> str:
    mark = "x" if task["is_completed"] else " "
    line = f"[{mark}] {task['id']}  {task['title']}"
    if task.get("description"):
        line += f" - {task['description']}"
    return line


def _print_tasks(tasks: list[dict]) -> None:
    if not tasks:
        print("No tasks.")
        return
    for task in tasks:
        print(_format_task(task))


def cmd_config(args, config, client) -> None:
    if args.server_url:
        config["server_url"] = args.server_url.rstrip("/")
        save_config(config)
    print(f"server_url: {config['server_url']}")
    print(f"username:   {config.get('username') or '-'}")


def cmd_register(args, config, client) -> None:
    user = client.register(args.username, _password(args), age=args.age, gender=args.gender)
    config.update(api_key=user["api_key"], username=user["username"])
    save_config(config)
    print(f"Registered and logged in as {user['username']}.")


def cmd_login(args, config, client) -> None:
    result = client.login(args.username, _password(args))
    config.update(api_key=result["api_key"], username=result["user"]["username"])
    save_config(config)
    print(f"Logged in as {result['user']['username']}.")


def cmd_logout(args, config, client) -> None:
    config.update(api_key=None, username=None)
    save_config(config)
    print("Logged out.")


def cmd_whoami(args, config, client) -> None:
    user = client.me()
    print(f"{user['username']} ({user['role']})")
    if user.get("organization_name"):
        print(f"organization: {user['organization_name']}")


def cmd_tasks(args, config, client) -> None:
    action = args.action
    if action == "list":
        _print_tasks(client.list_tasks())
    elif action == "search":
        _print_tasks(client.search_tasks(args.query, limit=args.limit))
    elif action == "add":
        print(_format_task(client.create_task(args.title, args.description)))
    elif action == "edit":
        current = client.get_task(args.task_id)
        title = args.title if args.title is not None else current["title"]
        description = (
            args.description if args.description is not None else current["description"]
        )
        print(_format_task(client.update_task(args.task_id, title, description)))
    elif action in ("done", "undo"):
        print(_format_task(client.set_completion(args.task_id, action == "done")))
    elif action == "rm":
        client.delete_task(args.task_id)
        print(f"Deleted {args.task_id}.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasks-cli", description="Task Manager terminal client")
    commands = parser.add_subparsers(dest="command", required=True)

    p = commands.add_parser("config", help="Show or change the server URL")
    p.add_argument("--server-url")
    p.set_defaults(handler=cmd_config)

    p = commands.add_parser("register", help="Create an account and log in")
    p.add_argument("username")
    p.add_argument("--password")
    p.add_argument("--age", type=int)
    p.add_argument("--gender", choices=["male", "female", "other", "prefer_not_to_say"])
    p.set_defaults(handler=cmd_register)

    p = commands.add_parser("login", help="Log in and store the API key")
    p.add_argument("username")
    p.add_argument("--password")
    p.set_defaults(handler=cmd_login)

    p = commands.add_parser("logout", help="Forget the stored API key")
    p.set_defaults(handler=cmd_logout)

    p = commands.add_parser("whoami", help="Show the logged-in user")
    p.set_defaults(handler=cmd_whoami)

    p = commands.add_parser("tasks", help="Manage tasks")
    p.set_defaults(handler=cmd_tasks)
    actions = p.add_subparsers(dest="action", required=True)

    actions.add_parser("list", help="List tasks")

    a = actions.add_parser("search", help="Search tasks")
    a.add_argument("query")
    a.add_argument("--limit", type=int)

    a = actions.add_parser("add", help="Create a task")
    a.add_argument("title")
    a.add_argument("--description", default="")

    a = actions.add_parser("edit", help="Change a task's title or description")
    a.add_argument("task_id")
    a.add_argument("--title")
    a.add_argument("--description")

    for name, help_text in (
        ("done", "Mark a task complete"),
        ("undo", "Mark a task incomplete"),
        ("rm", "Delete a task"),
    ):
        a = actions.add_parser(name, help=help_text)
        a.add_argument("task_id")

    return parser


def main(argv: list[str] | None = None, transport: httpx.BaseTransport | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()

    with APIClient(config["server_url"], config.get("api_key"), transport=transport) as client:
        try:
            args.handler(args, config, client)
        except APIError as exc:
            print(f"error: {exc.message}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
