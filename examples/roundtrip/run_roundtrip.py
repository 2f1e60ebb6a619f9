"""Example usage of the octio reader and writer."""

import io

import numpy as np

from octio import ElementKind, ObjectShape, Reader, Writer

buf = io.StringIO()

# Write a few objects; the title line goes out with the constructor
with Writer(buf, "Test file") as out:
    out.write(np.int32(-1), "int_var")
    out.write(np.array([0, 1, -2, 3, -4], dtype=np.int32), "int_vect")
    out.write(np.array([[0, 1, -2], [3, -4, 5]], dtype=np.int32), "int_mat")
    out.write_as_column(np.array([1.5, np.nan, -2.25]), "double_covect")
    out.write(np.array([1 + 2j, -0.5j], dtype=np.complex64), "cfloat_vect")
    out.write("hello world", "greeting")

    # Empty containers are not written
    print(f"empty written: {out.write(np.array([]), 'empty')}")

text = buf.getvalue()
print(text)

# Read back, choosing the kind for each object from its header
reader = Reader(io.StringIO(text))
print(f"title = {reader.title()}")
while reader.next_kind() is not ObjectShape.INVALID:
    name, kind = reader.next_name(), reader.next_kind()
    descriptor = reader.next_descriptor()
    if kind is ObjectShape.SCALAR:
        value = reader.read(ObjectShape.SCALAR, ElementKind.INT32)
    elif kind in (ObjectShape.VECTOR, ObjectShape.COVECTOR):
        value = reader.read(
            ObjectShape.VECTOR, descriptor.element_kind, is_complex=descriptor.is_complex
        )
    elif kind is ObjectShape.MATRIX:
        value = reader.read(ObjectShape.MATRIX, ElementKind.INT32)
    else:
        value = reader.read(ObjectShape.STRING)
    print(f"{name} ({kind.value}) = {value!r}")

# A value that does not match the requested kind is left in place
reader = Reader(io.StringIO(text))
reader.skip_one()
reader.skip_one()
print(f"read int_mat as scalar: {reader.read(ObjectShape.SCALAR)}")
print(f"still pending: {reader.next_name()} ({reader.next_kind().value})")
