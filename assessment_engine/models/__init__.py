# Package marker
# db.base declares Base and then imports every model; load it first so a
# direct import of any single model module sees a fully built Base.
import assessment_engine.db.base  # noqa
