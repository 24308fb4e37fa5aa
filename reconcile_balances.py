import sys

from donatehub.main import create_app
from donatehub.services.container import get_services

# -------------------------------------------------------------------
# Compares every stored balance with completed donations minus
# completed withdraws. Exits non-zero when any account drifted.
#
#   python reconcile_balances.py [streamer_id]
# -------------------------------------------------------------------


def reconcile(streamer_id=None):
    mismatches = get_services().settlement.reconcile(streamer_id)

    if not mismatches:
        print("All balances match the ledger.")
        return 0

    for m in mismatches:
        print(
            f"{m['streamer_id']:<15} stored={m['balance']:>12} "
            f"expected={m['expected']:>12}"
        )
    print(f"\n{len(mismatches)} account(s) out of balance.")
    return 1


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        target = int(sys.argv[1]) if len(sys.argv) > 1 else None
        sys.exit(reconcile(target))
