from honours_tracker.main import run

run()
