"""trialscope: tool-call layer over the ClinicalTrials.gov v2 search API.

Public API:
  ToolDispatcher   run one named tool and get a ResponseEnvelope back
  compose_query()  the pure argument bag -> upstream query mapping
"""

__version__ = "0.1.0"

from trialscope.tools.catalog import compose_query
from trialscope.tools.dispatcher import ToolDispatcher

__all__ = [
    "ToolDispatcher",
    "compose_query",
    "__version__",
]
