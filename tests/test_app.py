import datetime
import os
import sys
import tempfile
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from app import RepQuestApp
from client import RemoteUnavailableError
from models import WorkoutSet
from settings_schema import SettingsSchema

TODAY = datetime.date(2024, 5, 10)


class FakeClient:
    def __init__(self, lifts=None, fail=False):
        self.lifts = lifts or []
        self.fail = fail
        self.saved = []

    def get_lifts(self):
        if self.fail:
            raise RemoteUnavailableError("down")
        return self.lifts

    def save_workout_data(self, user_id, data):
        if self.fail:
            raise RemoteUnavailableError("down")
        self.saved.append(data)
        return {"id": 1, "userId": user_id, "data": data}

    def get_workout_data(self, user_id):
        if self.fail:
            raise RemoteUnavailableError("down")
        return self.saved[-1] if self.saved else None


class RepQuestAppTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.tmp.name, "repquest.db")
        self.client = FakeClient(
            [{"id": 1, "name": "Push ups", "defaultWeight": 0, "weightIncrement": 0}]
        )

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def make_app(self, **kwargs) -> RepQuestApp:
        return RepQuestApp(
            db_path=self.db_path, client=self.client, today=lambda: TODAY, **kwargs
        )

    def test_startup_reconciles_catalog(self) -> None:
        app = self.make_app()
        self.assertEqual(app.catalog_status, "online")
        self.assertIsNotNone(app.catalog.find_lift("api_lift_1"))

    def test_offline_startup_uses_local_catalog(self) -> None:
        self.client.fail = True
        app = self.make_app()
        self.assertEqual(app.catalog_status, "offline")
        self.assertIsNotNone(app.catalog.find_lift("bench_press"))

    def test_training_day_end_to_end(self) -> None:
        app = self.make_app()
        workout = app.workouts.workouts()[0]
        app.workouts.start_workout(workout.id)
        for weight in (135, 140, 145):
            app.workouts.complete_set(workout.id, WorkoutSet(weight=weight, reps=8))
        app.workouts.complete_workout(workout.id)

        self.assertEqual(app.complete_current_day(), "synced")
        self.assertEqual(len(self.client.saved), 1)
        archived = self.client.saved[0]
        self.assertEqual(archived["workoutState"]["currentDayIndex"], 1)
        self.assertEqual(len(archived["liftHistory"]["bench_press"]), 1)

        progress = app.progress("bench_press")
        self.assertEqual(progress["personal_records"][0]["weight"], 145)
        self.assertEqual(progress["volume"], (135 + 140 + 145) * 8)
        self.assertTrue(app.calendar()[-1]["is_workout_day"])

    def test_offline_day_completion_queues_and_drains(self) -> None:
        app = self.make_app(online=False)
        self.assertEqual(app.complete_current_day(), "queued")
        self.assertEqual(app.status()["pending"], 1)
        app.sync.set_online(True)
        self.assertEqual(app.status()["pending"], 0)
        self.assertEqual(len(self.client.saved), 1)

    def test_state_survives_restart(self) -> None:
        app = self.make_app()
        app.splits.move_to_day(2)
        app.catalog.update_lift_settings("squat", default_weight=225)

        reopened = self.make_app(refresh_catalog=False)
        self.assertTrue(reopened.state.restored)
        self.assertEqual(reopened.splits.current_day().name, "Legs")
        self.assertEqual(reopened.catalog.find_lift("squat").default_weight, 225)

    def test_settings_flow_into_services(self) -> None:
        settings = SettingsSchema(default_sets=5, rep_range="5 reps")
        app = self.make_app(settings=settings)
        workout = app.workouts.workouts()[0]
        self.assertEqual(workout.default_sets, 5)
        self.assertEqual(workout.rep_range, "5 reps")

    def test_status(self) -> None:
        status = self.make_app().status()
        self.assertEqual(status["split"], "Push Pull Legs")
        self.assertEqual(status["day"], "Push")
        self.assertTrue(status["online"])


if __name__ == "__main__":
    unittest.main()
