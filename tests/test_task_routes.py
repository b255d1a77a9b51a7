def test_player_tasks(client, started_game):
    _, imposters, crewmates = started_game()

    tasks = client.get(f"/api/tasks/player/{crewmates[0]}").get_json()
    assert len(tasks) == 3
    assert all(task["assignedTo"] == crewmates[0] for task in tasks)
    assert all(task["status"] == "pending" for task in tasks)
    assert [t["description"] for t in tasks] == [
        "Technical Question 1",
        "Technical Question 2",
        "Technical Question 3",
    ]

    assert client.get(f"/api/tasks/player/{imposters[0]}").get_json() == []


def test_get_task(client, started_game):
    _, _, crewmates = started_game()
    task_id = client.get(f"/api/tasks/player/{crewmates[0]}").get_json()[0]["taskId"]

    task = client.get(f"/api/tasks/{task_id}").get_json()
    assert task["taskId"] == task_id
    assert task["options"]
    assert "_id" not in task


def test_unknown_task(client):
    resp = client.get("/api/tasks/task_missing")

    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Task not found"
