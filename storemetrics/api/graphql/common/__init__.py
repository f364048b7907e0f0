# Common module for shared Strawberry elements across features
from storemetrics.api.graphql.common.inputs import DateRangeInput

__all__ = ['DateRangeInput']
