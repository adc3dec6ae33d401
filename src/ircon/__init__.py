"""

Device Bridge

Bridges the row operations of a relational engine (read, write, delete on a virtual single-row
table) onto the line protocol spoken by an air-conditioner controller on a TCP socket.

- Address: the table name doubles as the device address, `host[:port]`.
- Codec: maps the recognized columns (mode, temperature, power, angle) to `name:value` tokens
  on the wire, and projects the attribute cache back into a row for reads.
- Conduit: the socket to the device. Only the output direction is used; the device never
  answers.
- Connector: connects a conduit to a device address, at most once for each open share.
- LineWriter: a background thread that owns the output of the conduit. Lines queued from any
  thread are written one at a time, so concurrent writers never interleave on the wire.
- SharedDeviceState: one per table name, held in a ShareRegistry. Owns the connector, the
  writer and the attribute cache, and serializes everything on its lock.
- ScanSession: a cursor that yields exactly one synthetic row built from the cache.
- BridgeTable: the handler the engine drives - open, scan, write, update, delete, close.
- BridgeEngine: creates handlers and drops shares when the engine discards a table.


## Wire format

    mode:cool,temperature:24,\n

Every token is followed by a comma and the line ends with a newline. Columns that are not
recognized never reach the wire. A delete always sends the literal `mode:-,\n`.
Nothing is read back - the protocol is fire-and-forget.


## Threading

Engine calls are synchronous. The only background thread is the LineWriter of each connected
share. Send failures seen by that thread are raised on the next send from any handler of the
same share, which then drops the connection.

"""
