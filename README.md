# flowwallet

Building blocks for a custodial wallet service on the Flow blockchain.

## Modules

- `flowwallet.configs`: `parse_config(env_file_path=None, environ=None)` builds
  a `Config` from `FLOW_WALLET_*` environment variables. Values from an
  optional `.env` file fill in what the environment lacks. Invalid or missing
  required values raise `ConfigError`.
- `flowwallet.database`: `open_database(database_type, dsn)` opens an SQLite
  connection (only the `"sqlite"` type is accepted) and `close_database`
  closes it.
- `flowwallet.jobs`: `WorkerPool` runs jobs on worker threads from a bounded
  queue and raises `JobQueueFull` when the queue is full. `SqliteJobStore`
  records jobs, `JobService` lists them and looks them up by id, and
  `Job.wait(True)` blocks until a job has finished.
- `flowwallet.status`: the `Status` enum of job states and
  `status_from_text`, which parses a state name without regard to case.
- `flowwallet.handlers`: `JobsHandler.list(query)` and
  `JobsHandler.details(job_id)` return `Response` objects (status, body,
  content type). `json_response`, `error_response` and
  `check_non_empty_body` are the shared helpers.
- `flowwallet.accounts` and `flowwallet.keys`: `SqliteAccountStore` stores
  accounts together with their keys. `SqliteKeyStore` hands out an account's
  least recently used key and the admin proposal key indexes.
- `flowwallet.encryption`: `AESCrypter` encrypts and decrypts with AES-GCM.
  The output is the nonce followed by the ciphertext. Keys must be 16, 24
  or 32 bytes long.
- `flowwallet.events`: `EventDispatcher` calls each registered handler in its
  own thread. `ACCOUNT_ADDED` and `CHAIN_EVENT` are the shared dispatchers.
- `flowwallet.chain_events`: `Listener` polls a chain client for new events
  and passes them to a dispatcher. It records the last height it handled
  with `SqliteListenerStore`. The client is any object with
  `latest_block_height()` and `events_for_height_range(event_type, start, end)`.
- `flowwallet.flow_helpers`: address checks and formatting
  (`validate_address`, `format_address`, `hex_to_address`, `hex_string`) and
  `validate_transaction_id`.
- `flowwallet.debug`: `DebugInfo.render` describes a request and the build
  as plain text.
- `flowwallet.datastore`: `ListOptions` and `parse_list_options` normalise a
  limit and an offset.
- `flowwallet.errors`: `RequestError` (carries an HTTP status code),
  `JobQueueFull` and `RecordNotFound`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
import os

from flowwallet.configs import parse_config
from flowwallet.database import open_database
from flowwallet.encryption import AESCrypter
from flowwallet.jobs import JobService, SqliteJobStore, WorkerPool

config = parse_config(env_file_path=".env")
connection = open_database(config.database_type, config.database_dsn)

store = SqliteJobStore(connection)
pool = WorkerPool(store, capacity=config.worker_queue_capacity,
                  worker_count=config.worker_count)

def process(result):
    result.result = "done"

job = pool.add_job(process)
job.wait(True)
print(JobService(store).details(str(job.id)).to_json())
pool.stop()

crypter = AESCrypter(os.urandom(32))
assert crypter.decrypt(crypter.encrypt(b"message")) == b"message"
```

## Configuration

Every setting is read from a variable with the `FLOW_WALLET_` prefix, for
example `FLOW_WALLET_PORT` or `FLOW_WALLET_WORKER_COUNT`. These must be set
and non-empty:

- `FLOW_WALLET_ADMIN_ADDRESS`
- `FLOW_WALLET_ADMIN_PRIVATE_KEY`
- `FLOW_WALLET_ENCRYPTION_KEY`
- `FLOW_WALLET_ACCESS_API_HOST`

`FLOW_WALLET_TRANSACTION_TIMEOUT` takes a duration such as `30s` or `1m30s`.
`FLOW_WALLET_ENABLED_TOKENS` takes a comma-separated list.

## What this package does not do

- It has no command and no running HTTP server. The handlers build
  `Response` values, and serving them is left to the application.
- It does not talk to the Flow network. It does not create accounts on
  chain, sign or send transactions, or generate keys. The chain event
  `Listener` needs a client supplied by the caller.
- It has no token, template or transaction endpoints, and no Google KMS
  support.
- SQLite is the only database it supports.