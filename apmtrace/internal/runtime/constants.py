SYSTEM_CPU_TOTAL_NORM_PCT = "system.cpu.total.norm.pct"
SYSTEM_MEMORY_ACTUAL_FREE = "system.memory.actual.free"
SYSTEM_MEMORY_TOTAL = "system.memory.total"
PROCESS_CPU_TOTAL_NORM_PCT = "system.process.cpu.total.norm.pct"
PROCESS_MEMORY_SIZE = "system.process.memory.size"
PROCESS_MEMORY_RSS = "system.process.memory.rss.bytes"

GC_COUNT_GEN0 = "python.gc.count.gen0"
GC_COUNT_GEN1 = "python.gc.count.gen1"
GC_COUNT_GEN2 = "python.gc.count.gen2"
GC_COLLECTIONS = "python.gc.collections"
THREAD_COUNT = "python.threads.count"

SPAN_SELF_TIME_SUM = "span.self_time.sum.us"
SPAN_SELF_TIME_COUNT = "span.self_time.count"
TRANSACTION_DURATION_SUM = "transaction.duration.sum.us"
TRANSACTION_DURATION_COUNT = "transaction.duration.count"
TRANSACTION_BREAKDOWN_COUNT = "transaction.breakdown.count"

# Span type used for the self time of the transaction itself
APP_SPAN_TYPE = "app"
