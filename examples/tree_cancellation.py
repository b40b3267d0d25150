import asyncio

from tree_context import Context, Env


async def count(name: str, steps: int):
    for step in range(steps):
        await asyncio.sleep(0.01)

        if step % 25 == 0:
            print(f"{name}: {step}")

    return name


async def run():
    env = Env(TREE_CONTEXT_LOG_LEVEL="debug")

    async with Context(config=env) as ctx:
        ctx1 = ctx.new_child_context()
        ctx12 = ctx1.new_child_context()

        x = ctx.spawn(count, "x", 100)
        y = ctx1.spawn(count, "y", 100)
        z = ctx12.spawn(count, "z", 100)

        await asyncio.sleep(0.3)
        ctx1.release()

        print(f"y -> {await y}")
        print(f"z -> {await z}")
        print(f"x -> {await x}")

        print(ctx.snapshot().model_dump_json(indent=2))


asyncio.run(run())
