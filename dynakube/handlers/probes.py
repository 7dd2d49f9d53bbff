import datetime
import kopf
from dynakube.resources import CAPABILITIES


@kopf.on.probe(id="now")
def get_current_timestamp(**kwargs):
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@kopf.on.probe(id="capabilities")
def get_capabilities(**kwargs):
    """Capability modules this operator reconciles."""
    return [capability.module for capability in CAPABILITIES]
