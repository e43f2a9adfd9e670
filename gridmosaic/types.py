"""
SQL data types used by the registered functions.

Types are DuckDB types so they can be used directly as UDF parameter and
return types.
"""

import duckdb
from duckdb.typing import BIGINT, BOOLEAN, DOUBLE, INTEGER, VARCHAR

ChipType = duckdb.struct_type({"is_core": BOOLEAN, "index_id": BIGINT, "wkb": VARCHAR})
MosaicType = duckdb.struct_type({"chips": duckdb.list_type(ChipType)})
HexType = duckdb.struct_type({"hex": VARCHAR})
JSONType = duckdb.struct_type({"json": VARCHAR})
# Note InternalGeometryType depends on InternalCoordType
# They have to be declared in this order.
InternalCoordType = duckdb.list_type(DOUBLE)
InternalGeometryType = duckdb.struct_type({
    "type_id": INTEGER,
    "srid": INTEGER,
    "boundaries": duckdb.list_type(duckdb.list_type(InternalCoordType)),
    "holes": duckdb.list_type(duckdb.list_type(duckdb.list_type(InternalCoordType))),
})
