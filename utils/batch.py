"""
Per-item results and batch aggregation

Each item of a discovery batch (a transaction, an operation, a registry
contract) resolves to an ItemResult that either carries values or a
SkipReason. BatchReport collects them so skipped items are reported
instead of silently dropped.
"""

import logging

logger = logging.getLogger(__name__)

# Skip stages
STAGE_TRANSACTION = 'transaction'
STAGE_OPERATIONS = 'operations'
STAGE_EXTRACTION = 'extraction'
STAGE_VALIDATION = 'validation'
STAGE_VERIFICATION = 'verification'
STAGE_CANCELLED = 'cancelled'


class SkipReason:
    """Why one item of a batch was left out"""

    def __init__(self, item, stage, reason):
        self.item = item
        self.stage = stage
        self.reason = reason

    def to_dict(self):
        return {'item': self.item, 'stage': self.stage, 'reason': self.reason}

    def __repr__(self):
        return f'<SkipReason {self.stage} {self.item}: {self.reason}>'


class ItemResult:
    """Outcome of one batch item: a list of values, or a skip"""

    def __init__(self, values=None, skips=None):
        self.values = values or []
        self.skips = skips or []

    @classmethod
    def ok(cls, *values):
        return cls(values=list(values))

    @classmethod
    def skip(cls, item, stage, reason):
        return cls(skips=[SkipReason(item, stage, reason)])

    @property
    def skipped(self):
        return bool(self.skips) and not self.values


class BatchReport:
    """Aggregates item results into the final discovery response"""

    def __init__(self):
        self.items = []
        self.skipped = []

    def add(self, result):
        self.items.extend(result.values)
        for skip in result.skips:
            self.record_skip(skip)

    def record_skip(self, skip):
        logger.warning(f"Skipped {skip.stage} {skip.item}: {skip.reason}")
        self.skipped.append(skip)

    @property
    def total_found(self):
        return len(self.items)

    def skip_summary(self):
        """Count of skips per stage"""
        summary = {}
        for skip in self.skipped:
            summary[skip.stage] = summary.get(skip.stage, 0) + 1
        return summary

    def to_dict(self):
        return {
            'contracts': [item.to_dict() if hasattr(item, 'to_dict') else item for item in self.items],
            'totalFound': self.total_found,
            'skipped': [skip.to_dict() for skip in self.skipped],
        }
