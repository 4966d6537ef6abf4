from typing import Literal, TypedDict


class TransferMeta(TypedDict):
    mode: Literal["COLD", "WARM"]
    transferStatus: Literal["transferring", "accepted", "rejected"]
    sidWithTaskControl: str


class ChatTransferTaskAttributes(TypedDict, total=False):
    transferMeta: TransferMeta
    transferTargetType: Literal["worker", "queue"]


def has_transfer_started(task_attributes: ChatTransferTaskAttributes) -> bool:
    return bool(task_attributes and task_attributes.get("transferMeta"))


def has_task_control(client, workspace_sid: str, task_sid: str, task_attributes: ChatTransferTaskAttributes) -> bool:
    """
    Whether `task_sid` holds control of its transfer. Tasks that were never
    transferred always have control.
    """
    if not has_transfer_started(task_attributes):
        return True

    task = client.taskrouter.v1.workspaces(workspace_sid).tasks(task_sid).fetch()
    return task_attributes["transferMeta"].get("sidWithTaskControl") == task.sid
