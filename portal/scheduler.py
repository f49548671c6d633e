# portal/scheduler.py
from datetime import datetime, timedelta

from apscheduler.schedulers.background import BackgroundScheduler

from portal.extensions import news


def refresh_news(app):
    # background thread: log through the app, never raise into the scheduler
    with app.app_context():
        try:
            cache = news.refresh()
            app.logger.info("Scheduled news update stored %d articles", len(cache.get("articles") or []))
        except Exception:
            app.logger.exception("Scheduled news update failed")


def start_scheduler(app):
    scheduler = BackgroundScheduler()

    minutes = int(app.config.get("NEWS_REFRESH_MINUTES", 30))
    delay = int(app.config.get("NEWS_INITIAL_DELAY_SECONDS", 5))

    scheduler.add_job(
        lambda: refresh_news(app),
        trigger="interval",
        minutes=minutes,
        id="news_refresh",
        replace_existing=True,
    )
    # first fetch shortly after boot
    scheduler.add_job(
        lambda: refresh_news(app),
        trigger="date",
        run_date=datetime.now() + timedelta(seconds=delay),
        id="news_refresh_initial",
        replace_existing=True,
    )
    scheduler.start()
    app.logger.info("News scheduler started (every %d min, first run in %ds)", minutes, delay)
    return scheduler
